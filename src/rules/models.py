from pydantic import BaseModel, Field, field_validator


class ProjectRules(BaseModel):
    slug: str
    rules_version: str
    required_sections: list[str] = Field(default_factory=list)

class ActivityRules(BaseModel):
    inactivity_threshold_seconds: int = Field(default=5, ge=1)
    signals: list[str] = Field(default_factory=lambda: ["scroll"], min_length=1)

    @field_validator("signals")
    @classmethod
    def signals_not_blank(cls, v: list[str]) -> list[str]:
        if any(not s.strip() for s in v):
            raise ValueError("signal names cannot be blank")
        return v

class OpsRules(BaseModel):
    log_level: str = "INFO"
    required_env: list[str] = Field(default_factory=list)

    @field_validator("log_level")
    @classmethod
    def known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level

class Rules(BaseModel):
    project: ProjectRules
    activity: ActivityRules = Field(default_factory=ActivityRules)
    ops: OpsRules = Field(default_factory=OpsRules)
