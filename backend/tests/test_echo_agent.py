"""
Tests for EchoAgent
"""
import pytest

from bricks_builder.agents.echo_agent import EchoAgent, EchoTransform


@pytest.fixture
def agent():
    return EchoAgent({"id": "echo-test"})


class TestEchoAgentConfig:

    def test_defaults(self, agent):
        assert agent.config.type == "EchoAgent"
        assert agent.config.min_confidence == 0.7
        assert agent.config.id == "echo-test"

    def test_override_min_confidence(self):
        assert EchoAgent({"min_confidence": 0.5}).config.min_confidence == 0.5


class TestEchoAgentExecution:

    @pytest.mark.asyncio
    async def test_echo_without_transform(self, agent):
        result = await agent.run({"message": "Hello World"})

        assert result.success is True
        assert result.data.processed_message == "Hello World"
        assert result.data.transform_applied == EchoTransform.NONE
        assert result.data.repeat_count == 1
        assert result.confidence == 1.0

    @pytest.mark.asyncio
    async def test_uppercase_and_repeat(self, agent):
        result = await agent.run({"message": "Hello World", "repeat": 2, "transform": "uppercase"})

        assert result.data.processed_message == "HELLO WORLD HELLO WORLD"
        assert result.data.message_length == len("HELLO WORLD HELLO WORLD")
        assert "Applied uppercase transformation" in result.reasoning
        assert "Repeated message 2 times" in result.reasoning

    @pytest.mark.asyncio
    async def test_lowercase(self, agent):
        result = await agent.run({"message": "Hello World", "transform": "lowercase"})
        assert result.data.processed_message == "hello world"

    @pytest.mark.asyncio
    async def test_reverse(self, agent):
        result = await agent.run({"message": "Hello World", "transform": "reverse"})
        assert result.data.processed_message == "dlroW olleH"

    @pytest.mark.asyncio
    async def test_reasoning_order(self, agent):
        result = await agent.run({"message": "Hello World"})

        assert result.reasoning == [
            "Input validation passed",
            "Starting echo agent execution",
            'Input message: "Hello World"',
            "Transform: none, Repeat: 1",
            "No transformation applied",
            "Echo agent execution completed",
        ]

    @pytest.mark.asyncio
    async def test_metadata_counts(self, agent):
        result = await agent.run({"message": "three word message"})

        assert result.metadata.extra == {"character_count": 18, "word_count": 3}
        assert result.metadata.agent_type == "EchoAgent"


class TestEchoAgentValidation:

    @pytest.mark.asyncio
    async def test_empty_message(self, agent):
        result = await agent.run({"message": ""})

        assert result.success is False
        assert result.errors == ["[VALIDATION_ERROR] Input validation failed"]
        assert result.metadata.recoverable is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("repeat", [0, 11])
    async def test_repeat_out_of_range(self, agent, repeat):
        result = await agent.run({"message": "Hello World", "repeat": repeat})
        assert result.success is False
        assert result.metadata.error_code == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_unknown_transform(self, agent):
        result = await agent.run({"message": "Hello World", "transform": "shout"})
        assert result.success is False


class TestEchoAgentConfidence:

    @pytest.mark.asyncio
    async def test_short_message_penalty(self, agent):
        result = await agent.run({"message": "Hi"})
        assert result.confidence == pytest.approx(0.9)

    @pytest.mark.asyncio
    async def test_long_message_penalty(self, agent):
        result = await agent.run({"message": "a" * 600})
        assert result.confidence == pytest.approx(0.8)

    @pytest.mark.asyncio
    async def test_high_repeat_penalty_and_warning(self, agent):
        result = await agent.run({"message": "Hello World", "repeat": 6})

        assert "High repeat count may impact performance" in result.warnings
        # -0.15 for the repeat count, -0.1 for the warning
        assert result.confidence == pytest.approx(0.75)

    @pytest.mark.asyncio
    async def test_very_long_message_falls_below_minimum(self, agent):
        result = await agent.run({"message": "a" * 1001, "repeat": 6})

        # 1.0 - 0.2 - 0.15 - 2 * 0.1
        assert result.confidence == pytest.approx(0.45)
        assert result.success is True
        assert result.warnings[-1] == "Confidence 0.45 below minimum threshold 0.7"
