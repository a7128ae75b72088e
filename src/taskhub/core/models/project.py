"""Project Domain Model

Project 拥有零个或多个 Task，删除 Project 时级联删除其 Task。
"""

from datetime import datetime

from pydantic import BaseModel, Field


class Project(BaseModel):
    """Project 数据模型"""

    project_id: str = Field(description="唯一标识，ULID 格式")
    name: str = Field(min_length=1, description="项目名称")
    description: str = Field(default="", description="项目描述")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")
