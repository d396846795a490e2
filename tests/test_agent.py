import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage

from agent_engine import AgentAction, AgentInput, ScheduleDescriptor, SubagentHistoryPolicy, ToolContext
from agent_engine.domain.errors import ConfigurationError

from .conftest import tool_call, use_skill_call


def shape(messages):
    return [
        (type(message).__name__, message.content, [c["name"] for c in getattr(message, "tool_calls", [])])
        for message in messages
    ]


def rejecting_forced_choice(messages, tool_choice, index):
    if tool_choice not in (None, "auto"):
        raise ValueError("Tool choice must be auto")
    return AIMessage(content="hello")


class TestAsk:
    @pytest.mark.asyncio
    async def test_plain_answer(self, make_agent):
        agent = make_agent([AIMessage(content="Hi there!")])

        result = await agent.ask(AgentInput(query="hello"))

        assert shape(result.messages) == [
            ("HumanMessage", "hello", []),
            ("AIMessage", "Hi there!", []),
        ]
        assert result.skills == []

    @pytest.mark.asyncio
    async def test_prior_messages_reach_the_model(self, make_agent):
        agent = make_agent([AIMessage(content="sure")])

        result = await agent.ask(AgentInput(
            messages=[
                {"role": "user", "content": "earlier"},
                {"role": "assistant", "content": "before"},
            ],
            query="now"
        ))

        sent = agent.chat_model.calls[0]["messages"]
        assert isinstance(sent[0], SystemMessage)
        assert shape(sent[1:]) == [
            ("HumanMessage", "earlier", []),
            ("AIMessage", "before", []),
            ("HumanMessage", "now", []),
        ]
        # Prior messages are history, not part of the turn result
        assert result.messages[0].content == "now"
        assert len(agent.store) == 5

    @pytest.mark.asyncio
    async def test_tool_loop_until_text_reply(self, make_agent):
        agent = make_agent([use_skill_call("cooking"), AIMessage(content="Here is a recipe.")])

        result = await agent.ask(AgentInput(query="what should I cook?"))

        assert [type(m) for m in result.messages] == [HumanMessage, AIMessage, ToolMessage, AIMessage]
        assert result.messages[-1].content == "Here is a recipe."
        assert result.skills == ["cooking"]

    @pytest.mark.asyncio
    async def test_skill_enabled_mid_turn_reaches_next_step(self, make_agent):
        agent = make_agent([use_skill_call("cooking"), AIMessage(content="done")])

        await agent.ask(AgentInput(query="what should I cook?"))

        first_prompt = agent.chat_model.calls[0]["messages"][0].content
        second_prompt = agent.chat_model.calls[1]["messages"][0].content
        assert "### Skill: cooking" not in first_prompt
        assert "### Skill: cooking" in second_prompt
        assert "Always list ingredients first." in second_prompt

    @pytest.mark.asyncio
    async def test_skills_persist_across_turns(self, make_agent):
        agent = make_agent([use_skill_call("cooking"), AIMessage(content="done"), AIMessage(content="again")])

        await agent.ask(AgentInput(query="what should I cook?"))
        result = await agent.ask(AgentInput(query="thanks"))

        assert result.skills == ["cooking"]
        assert "### Skill: cooking" in agent.chat_model.calls[2]["messages"][0].content

    @pytest.mark.asyncio
    async def test_use_skills_are_enabled_from_the_start(self, make_agent):
        agent = make_agent([AIMessage(content="ok")], use_skills=["travel", "gardening"])

        result = await agent.ask(AgentInput(query="plan a trip"))

        assert result.skills == ["travel"]
        assert "### Skill: travel" in agent.chat_model.calls[0]["messages"][0].content

    @pytest.mark.asyncio
    async def test_unknown_tool_becomes_error_result(self, make_agent):
        agent = make_agent([tool_call("teleport"), AIMessage(content="sorry")])

        result = await agent.ask(AgentInput(query="beam me up"))

        tool_message = result.messages[2]
        assert isinstance(tool_message, ToolMessage)
        assert tool_message.status == "error"
        assert "teleport" in tool_message.content
        assert result.messages[-1].content == "sorry"

    @pytest.mark.asyncio
    async def test_tool_failure_aborts_the_turn(self, make_agent, observer):
        agent = make_agent(
            [tool_call("get_schedules"), AIMessage(content="never")],
            allowed=[AgentAction.SCHEDULE],
            tool_context=ToolContext(),
        )

        with pytest.raises(ConfigurationError):
            await agent.ask(AgentInput(query="list my schedules"))

        assert shape(agent.store.snapshot()) == [("HumanMessage", "list my schedules", [])]
        assert observer.events[-1][0] == "error"

    @pytest.mark.asyncio
    async def test_on_finish_receives_turn_messages(self, make_agent):
        finished = []

        async def on_finish(messages):
            finished.append(messages)

        agent = make_agent([AIMessage(content="bye")])
        agent.on_finish = on_finish

        result = await agent.ask(AgentInput(query="see you"))

        assert finished == [result.messages]


class TestStepBound:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_steps", [1, 3])
    async def test_tool_loop_stops_at_max_steps(self, make_agent, max_steps):
        agent = make_agent(
            [lambda messages, tool_choice, index: use_skill_call("cooking", f"call-{index}")],
            max_steps=max_steps,
        )

        result = await agent.ask(AgentInput(query="keep going"))

        assert len(agent.chat_model.calls) == max_steps
        assert len(result.messages) == 1 + 2 * max_steps
        assert isinstance(result.messages[-1], ToolMessage)


class TestToolChoiceFallback:
    @pytest.mark.asyncio
    async def test_rejected_forced_choice_retries_with_auto(self, make_agent):
        agent = make_agent(
            [rejecting_forced_choice],
            allowed=[AgentAction.WEB_SEARCH],
            brave_api_key="brave-key",
            tool_choice="web_search",
        )

        result = await agent.ask(AgentInput(query="news?"))

        assert [call["tool_choice"] for call in agent.chat_model.calls] == ["web_search", "auto"]
        assert result.messages[-1].content == "hello"
        # The rejected attempt leaves nothing behind
        assert shape(agent.store.snapshot()) == [
            ("HumanMessage", "news?", []),
            ("AIMessage", "hello", []),
        ]

    @pytest.mark.asyncio
    async def test_second_rejection_reaches_the_caller(self, make_agent):
        agent = make_agent(
            [ValueError("Tool choice must be auto")],
            allowed=[AgentAction.WEB_SEARCH],
            brave_api_key="brave-key",
            tool_choice="web_search",
        )

        with pytest.raises(ValueError, match="Tool choice must be auto"):
            await agent.ask(AgentInput(query="news?"))
        assert len(agent.chat_model.calls) == 2

    @pytest.mark.asyncio
    async def test_rejection_wrapped_by_the_client_is_retried(self, make_agent):
        def reply(messages, tool_choice, index):
            if tool_choice not in (None, "auto"):
                try:
                    raise ValueError("Tool choice must be auto")
                except ValueError as error:
                    raise RuntimeError("request failed") from error
            return AIMessage(content="hello")

        agent = make_agent(
            [reply],
            allowed=[AgentAction.WEB_SEARCH],
            brave_api_key="brave-key",
            tool_choice="web_search",
        )

        result = await agent.ask(AgentInput(query="news?"))

        assert [call["tool_choice"] for call in agent.chat_model.calls] == ["web_search", "auto"]
        assert result.messages[-1].content == "hello"

    @pytest.mark.asyncio
    async def test_other_errors_are_not_retried(self, make_agent):
        agent = make_agent(
            [RuntimeError("upstream unavailable")],
            allowed=[AgentAction.WEB_SEARCH],
            brave_api_key="brave-key",
            tool_choice="web_search",
        )

        with pytest.raises(RuntimeError, match="upstream unavailable"):
            await agent.ask(AgentInput(query="news?"))
        assert len(agent.chat_model.calls) == 1


class TestTriggerSchedule:
    @pytest.mark.asyncio
    async def test_schedule_turn(self, make_agent):
        agent = make_agent([AIMessage(content="Good morning!")], allowed=[AgentAction.SCHEDULE], skills=[])
        schedule = ScheduleDescriptor(**{
            "name": "daily",
            "pattern": "0 9 * * *",
            "command": "say good morning",
            "maxCalls": 1,
        })

        result = await agent.trigger_schedule(AgentInput(), schedule)

        assert isinstance(result.messages[0], HumanMessage)
        assert "say good morning" in result.messages[0].content
        assert "schedule-name: daily" in result.messages[0].content
        assert result.messages[-1].content == "Good morning!"
        assert result.skills == []

    @pytest.mark.asyncio
    async def test_forced_choice_is_not_applied(self, make_agent):
        agent = make_agent(
            [AIMessage(content="done")],
            allowed=[AgentAction.WEB_SEARCH],
            brave_api_key="brave-key",
            tool_choice="web_search",
        )
        schedule = ScheduleDescriptor(name="daily", pattern="0 9 * * *", command="check the news")

        await agent.trigger_schedule(AgentInput(), schedule)

        assert agent.chat_model.calls[0]["tool_choice"] is None


class TestSubagent:
    @pytest.mark.asyncio
    async def test_ask_as_subagent_uses_delegate_prompt(self, make_agent):
        agent = make_agent([AIMessage(content="found it")])

        result = await agent.ask_as_subagent(AgentInput(query="find a recipe"), name="researcher", description="Finds sources")

        system = agent.chat_model.calls[0]["messages"][0]
        assert "You are researcher" in system.content
        assert "Your role: Finds sources" in system.content
        assert result.messages[-1].content == "found it"

    @pytest.mark.asyncio
    async def test_shared_history(self, make_agent):
        agent = make_agent([AIMessage(content="first"), AIMessage(content="second")])

        await agent.ask(AgentInput(query="hello"))
        await agent.ask_as_subagent(AgentInput(query="subtask"), name="helper")

        sent = agent.chat_model.calls[1]["messages"]
        assert [m.content for m in sent[1:]] == ["hello", "first", "subtask"]
        assert len(agent.store) == 4

    @pytest.mark.asyncio
    async def test_isolated_history(self, make_agent):
        agent = make_agent(
            [AIMessage(content="first"), AIMessage(content="second")],
            subagent_history_policy=SubagentHistoryPolicy.ISOLATED,
        )

        await agent.ask(AgentInput(query="hello"))
        await agent.ask_as_subagent(AgentInput(query="subtask"), name="helper")

        sent = agent.chat_model.calls[1]["messages"]
        assert [m.content for m in sent[1:]] == ["subtask"]
        assert len(agent.store) == 2

    @pytest.mark.asyncio
    async def test_forced_choice_is_not_applied(self, make_agent):
        agent = make_agent(
            [AIMessage(content="done")],
            allowed=[AgentAction.WEB_SEARCH],
            brave_api_key="brave-key",
            tool_choice="web_search",
        )

        await agent.ask_as_subagent(AgentInput(query="subtask"), name="helper")

        assert agent.chat_model.calls[0]["tool_choice"] is None

    @pytest.mark.asyncio
    async def test_subagent_tool_delegates_to_child(self, make_agent):
        agent = make_agent(
            [
                tool_call("subagent", {"name": "researcher", "task": "find sources", "description": "Finds sources"}),
                AIMessage(content="sub answer"),
                AIMessage(content="done"),
            ],
            allowed=[AgentAction.SKILL, AgentAction.SUBAGENT],
        )

        result = await agent.ask(AgentInput(query="research this"))

        parent_call, child_call, _ = agent.chat_model.calls
        assert "subagent" in parent_call["tool_names"]
        assert child_call["tool_names"] == ["use_skill"]
        assert "You are researcher" in child_call["messages"][0].content
        assert child_call["messages"][-1].content == "find sources"

        tool_message = result.messages[2]
        assert isinstance(tool_message, ToolMessage)
        assert "sub answer" in tool_message.content
        assert result.messages[-1].content == "done"
        # The child keeps its own conversation
        assert "find sources" not in [m.content for m in agent.store.snapshot()]


class TestAppendOnly:
    @pytest.mark.asyncio
    async def test_history_only_grows_across_entry_points(self, make_agent):
        agent = make_agent([AIMessage(content="ok")], allowed=[AgentAction.SCHEDULE], skills=[])
        schedule = ScheduleDescriptor(name="daily", pattern="0 9 * * *", command="say good morning")
        snapshots = [agent.store.snapshot()]

        await agent.ask(AgentInput(query="one"))
        snapshots.append(agent.store.snapshot())
        await agent.stream(AgentInput(query="two")).collect()
        snapshots.append(agent.store.snapshot())
        await agent.trigger_schedule(AgentInput(), schedule)
        snapshots.append(agent.store.snapshot())
        await agent.ask_as_subagent(AgentInput(query="three"), name="helper")
        snapshots.append(agent.store.snapshot())

        for before, after in zip(snapshots, snapshots[1:]):
            assert len(after) > len(before)
            assert all(a is b for a, b in zip(before, after))
        assert len(snapshots[-1]) == 8
