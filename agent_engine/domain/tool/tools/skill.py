from typing import Dict, Any, Callable, List
from pydantic import BaseModel, Field
from langchain_core.tools import BaseTool, StructuredTool

from agent_engine.domain.models.agent_state import Skill


class UseSkillInput(BaseModel):
    skill_name: str = Field(description="The name of the skill to use")
    reason: str = Field(description="The reason why you think this skill is relevant to the current task")


def get_skill_tools(skills: List[Skill], use_skill: Callable[[Skill], Any]) -> Dict[str, BaseTool]:
    """Tools that let the model switch on a skill from the catalog

    ``use_skill`` is the only way the tool touches agent state; it must be
    idempotent since the model may ask for the same skill again.
    """

    catalog = {skill.name: skill for skill in skills}

    async def execute(skill_name: str, reason: str) -> Dict[str, Any]:
        skill = catalog.get(skill_name)
        if skill is None:
            return {"error": "Skill not found"}
        use_skill(skill)
        return {
            "success": True,
            "skillName": skill_name,
            "reason": reason,
        }

    use_skill_tool = StructuredTool.from_function(
        coroutine=execute,
        name="use_skill",
        description="Use a skill if you think it is relevant to the current task",
        args_schema=UseSkillInput,
    )

    return {"use_skill": use_skill_tool}
