"""Data models for the Prisma Cloud compliance API."""

from pydantic import BaseModel, ConfigDict, Field


class TokenResponse(BaseModel):
    """Body of the login and token extend responses."""

    token: str = Field(..., min_length=1, description="Auth token")


class ComplianceInfo(BaseModel):
    """Assets compliance information for a single compliance standard.

    ``total_assets_count`` is taken from the server as-is and is not
    recomputed from the passed and failed counts.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., description="Compliance standard name")
    description: str = Field(default="", description="Compliance standard description")
    policies_count: int = Field(
        default=0, alias="assignedPolicies", description="Assigned policies"
    )
    passed_assets_count: int = Field(
        ..., alias="passedResources", description="Assets passing all policies"
    )
    failed_assets_count: int = Field(
        ..., alias="failedResources", description="Assets failing a policy"
    )
    total_assets_count: int = Field(
        ..., alias="totalResources", description="Assets evaluated"
    )


class CompliancePosture(BaseModel):
    """Compliance posture document, the payload sits under one wrapper key."""

    compliance_details: list[ComplianceInfo] = Field(..., alias="complianceDetails")
