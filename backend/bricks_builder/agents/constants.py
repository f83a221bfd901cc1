"""
Structure agent scoring constants and execution limits

The confidence values are a fixed heuristic describing how much input the
agent had to work with. They are not a measured quality signal.
"""


class CONFIDENCE_SCORING:
    # Template fallback starting point
    BASE_CONFIDENCE = 0.6
    # Starting point when the structure came from the text generation CLI
    AI_BASE_CONFIDENCE = 0.7
    # ACSS JS dump supplied
    ACSS_JS_DUMP_BOOST = 0.1
    # Container grid code supplied
    CONTAINER_GRID_BOOST = 0.1
    # At least one reference scenario supplied
    REFERENCE_SCENARIOS_BOOST = 0.2
    # Build sessions move to review at or above this confidence
    AUTO_REVIEW_THRESHOLD = 0.7
    MAX_CONFIDENCE = 1.0


class AGENT_LIMITS:
    MAX_EXECUTION_TIME_MS = 30000
    # Generated trees larger or deeper than this are rejected
    MAX_ELEMENTS = 1000
    MAX_NESTING_DEPTH = 10
    # ACSS dumps are cut to this many characters before going into a prompt
    MAX_ACSS_DUMP_CHARS = 4000


AUTO_REVIEW_THRESHOLD = CONFIDENCE_SCORING.AUTO_REVIEW_THRESHOLD
