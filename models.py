from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class Task(BaseModel):
    id: int
    text: str
    completed: bool = False
    date: str


class User(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    user_id: str = Field(alias='userId')
    password: str
    gmail: str
    # date string (YYYY-MM-DD) -> tasks created that day
    tasks: Dict[str, List[Task]] = Field(default_factory=dict)

    def __repr__(self):
        return f'<User {self.user_id}>'

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


class DayStat(BaseModel):
    date: str
    total: int = 0
    completed: int = 0
    tasks: List[Task] = Field(default_factory=list)
