from typing import Dict, Any, Optional
from pydantic import BaseModel, Field
from langchain_core.messages import AIMessage
from langchain_core.tools import BaseTool, StructuredTool

from agent_engine.domain.models.agent_state import message_text
from agent_engine.domain.orchestration.subagent.base_subagent import SubagentRunner


class SubagentInput(BaseModel):
    name: str = Field(description="Name of the subagent, e.g. 'researcher'")
    description: Optional[str] = Field(None, description="What the subagent is good at")
    task: str = Field(description="The task for the subagent, with all context it needs")


def get_subagent_tools(runner: SubagentRunner) -> Dict[str, BaseTool]:
    """Tools that hand a self-contained task to a delegate agent"""

    async def subagent(name: str, task: str, description: Optional[str] = None) -> Dict[str, Any]:
        result = await runner.run(name, description, task)
        answer = ""
        for message in reversed(result.messages):
            if isinstance(message, AIMessage) and message_text(message):
                answer = message_text(message)
                break
        return {
            "name": name,
            "result": answer,
            "skills": result.skills,
        }

    return {
        "subagent": StructuredTool.from_function(
            coroutine=subagent,
            name="subagent",
            description="Delegate a self-contained task to a subagent and get its answer back",
            args_schema=SubagentInput,
        ),
    }
