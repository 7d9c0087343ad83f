from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Enums
# =============================================================================


class DistanceBand(str, Enum):
    """Search radius options offered by the site, in km."""

    KM_10 = "10"
    KM_25 = "25"
    KM_35 = "35"
    KM_50 = "50"
    KM_75 = "75"
    KM_100 = "100"


class JobType(str, Enum):
    """Which classifier a run uses."""

    INTERN = "intern"
    JUNIOR_REACT = "junior_react"


class DetailSource(str, Enum):
    """Where job details are read from."""

    API = "api"
    DOM = "dom"


# =============================================================================
# Search and job models
# =============================================================================


class SearchQuery(BaseModel):
    """What to search for."""

    model_config = ConfigDict(frozen=True)

    keyword: str = Field(..., description="Job title or keywords")
    location: str = Field(..., description="City, region or country")
    distance: DistanceBand | None = Field(
        default=None, description="Search radius around the location"
    )


class JobRecord(BaseModel):
    """One job listing as extracted from the results."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = Field(..., description="Job title")
    company_name: str = Field(default="", alias="companyName")
    description: str = Field(default="", description="Job description (HTML)")
    url: str = Field(default="", description="Link to the listing")
    idx: int = Field(default=0, description="Running index in the current run")
    page_number: int = Field(default=0, alias="pageNumber")


# =============================================================================
# viewjob endpoint payload
# =============================================================================


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class JobInfoHeaderModel(_ApiModel):
    job_title: str = Field(default="", alias="jobTitle")
    company_name: str = Field(default="", alias="companyName")


class JobInfoModel(_ApiModel):
    job_info_header_model: JobInfoHeaderModel = Field(alias="jobInfoHeaderModel")
    sanitized_job_description: str = Field(default="", alias="sanitizedJobDescription")


class JobInfoWrapperModel(_ApiModel):
    job_info_model: JobInfoModel = Field(alias="jobInfoModel")


class ViewJobBody(_ApiModel):
    job_info_wrapper_model: JobInfoWrapperModel = Field(alias="jobInfoWrapperModel")


class ViewJobResponse(_ApiModel):
    """Payload returned by the viewjob endpoint."""

    status: str
    body: ViewJobBody | None = None


# =============================================================================
# Classification
# =============================================================================


@dataclass(frozen=True)
class Verdict:
    """Result of a classifier: accepted or not, and why."""

    accepted: bool
    reason: str

    def __bool__(self) -> bool:
        return self.accepted
