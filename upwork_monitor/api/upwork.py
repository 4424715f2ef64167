"""Upwork GraphQL operations and the mapping from raw results to Job."""
from __future__ import annotations

from typing import Any

from upwork_monitor.api.rotation import TokenRotationExecutor
from upwork_monitor.api.transport import GraphQLTransport
from upwork_monitor.config import JOB_DETAILS, JOB_SEARCH, TALENT_PROFILE, MonitorConfig
from upwork_monitor.errors import ApiError, RotationOutcome
from upwork_monitor.log import get_logger
from upwork_monitor.models import Budget, Client, Job, Skill

log = get_logger(__name__)

JOB_SEARCH_ALIAS = "userJobSearch"
JOB_DETAILS_ALIAS = "gql-query-get-auth-job-details"
TALENT_PROFILE_ALIAS = "getDetails"

JOB_SEARCH_QUERY = """
query UserJobSearch($requestVariables: UserJobSearchV1Request!) {
  search {
    universalSearchNuxt {
      userJobSearchV1(request: $requestVariables) {
        paging { total offset count }
        results {
          id
          title
          description
          relevanceEncoded
          applied
          ontologySkills { uid prefLabel prettyName: prefLabel }
          jobTile { job { id ciphertext: cipherText publishTime createTime jobType hourlyBudgetMin hourlyBudgetMax fixedPriceAmount { amount isoCurrencyCode } } }
          upworkHistoryData { client { paymentVerificationStatus country totalSpent { amount } totalFeedback } }
        }
      }
    }
  }
}"""

JOB_DETAILS_QUERY = """
query JobAuthDetailsQuery($id: ID!) {
  jobAuthDetails(id: $id) {
    opening {
      job {
        description
        clientActivity {
          lastBuyerActivity
          totalApplicants
          totalHired
          totalInvitedToInterview
          numberOfPositionsToHire
        }
      }
      questions { question }
    }
    buyer {
      info {
        stats {
          totalAssignments
          hoursCount
          feedbackCount
          score
          totalCharges { amount }
        }
      }
      workHistory { contractorInfo { contractorName ciphertext } }
    }
    applicantsBidsStats {
      avgRateBid { amount }
      minRateBid { amount }
      maxRateBid { amount }
    }
  }
}"""

TALENT_PROFILE_QUERY = """
query GetTalentProfile($profileUrl: String) {
  talentVPDAuthProfile(filter: { profileUrl: $profileUrl }) {
    identity { uid ciphertext }
    profile { name title description location { country city } skills { node { prettyName rank } } }
    stats { totalHours totalJobsWorked rating hourlyRate { node { amount currencyCode } } totalEarnings }
  }
}"""


def _dig(data: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _budget_amount(tile_job: dict, is_min: bool) -> float:
    if "hourly" in (tile_job.get("jobType") or "").lower():
        value = tile_job.get("hourlyBudgetMin" if is_min else "hourlyBudgetMax")
    else:
        value = _dig(tile_job, "fixedPriceAmount", "amount")
    try:
        return float(value) if value else 0
    except (TypeError, ValueError):
        return 0


def job_from_search_result(raw: dict[str, Any]) -> Job:
    """Normalize one ``userJobSearchV1`` result."""
    tile_job = _dig(raw, "jobTile", "job") or {}
    client = _dig(raw, "upworkHistoryData", "client") or {}
    ciphertext = tile_job.get("ciphertext") or ""
    job_id = ciphertext or str(tile_job.get("id") or raw.get("id") or "")
    if not job_id:
        raise ValueError("search result has neither ciphertext nor id")

    skills = tuple(
        Skill(name=s.get("prettyName") or s.get("prefLabel") or "")
        for s in raw.get("ontologySkills") or []
        if isinstance(s, dict)
    )
    return Job(
        id=job_id,
        ciphertext=ciphertext,
        title=raw.get("title") or "",
        description=raw.get("description") or "",
        posted_on=tile_job.get("publishTime") or tile_job.get("createTime"),
        applied=bool(raw.get("applied")),
        budget=Budget(
            type=tile_job.get("jobType") or "",
            currency_code=_dig(tile_job, "fixedPriceAmount", "isoCurrencyCode") or "USD",
            min_amount=_budget_amount(tile_job, True),
            max_amount=_budget_amount(tile_job, False),
        ),
        client=Client(
            payment_verification_status=client.get("paymentVerificationStatus") or "N/A",
            country=client.get("country") or "N/A",
            total_spent=_dig(client, "totalSpent", "amount") or 0,
            rating=client.get("totalFeedback") or None,
        ),
        skills=skills,
    )


class UpworkClient:
    """The three Upwork operations, each run through token rotation."""

    def __init__(
        self,
        config: MonitorConfig,
        transport: GraphQLTransport,
        executor: TokenRotationExecutor,
    ) -> None:
        self.config = config
        self.transport = transport
        self.executor = executor

    # Each ``_fetch_*`` takes the bearer token first so the executor can
    # retry it with different candidates.

    def _fetch_jobs(self, token: str, user_query: str) -> list[Job] | ApiError:
        variables = {
            "requestVariables": {
                "userQuery": user_query or self.config.default_user_query,
                "contractorTier": list(self.config.contractor_tiers),
                "sort": self.config.sort_criteria,
                "highlight": False,
                "paging": {"offset": 0, "count": self.config.api_fetch_count},
            }
        }
        data = self.transport.execute(token, JOB_SEARCH_ALIAS, JOB_SEARCH_QUERY, variables)
        if isinstance(data, ApiError):
            return data

        results = _dig(data, "data", "search", "universalSearchNuxt", "userJobSearchV1", "results")
        if not results:
            return []
        jobs: list[Job] = []
        for raw in results:
            try:
                jobs.append(job_from_search_result(raw))
            except (ValueError, AttributeError) as exc:
                log.warning("Skipping unusable search result: %s", exc)
        return jobs

    def _fetch_job_details(self, token: str, job_ciphertext: str) -> dict | None | ApiError:
        variables = {"id": job_ciphertext, "isLoggedIn": True}
        data = self.transport.execute(token, JOB_DETAILS_ALIAS, JOB_DETAILS_QUERY, variables)
        if isinstance(data, ApiError):
            return data
        return _dig(data, "data", "jobAuthDetails") or None

    def _fetch_talent_profile(self, token: str, profile_ciphertext: str) -> dict | None | ApiError:
        variables = {"profileUrl": profile_ciphertext}
        data = self.transport.execute(token, TALENT_PROFILE_ALIAS, TALENT_PROFILE_QUERY, variables)
        if isinstance(data, ApiError):
            return data
        return _dig(data, "data", "talentVPDAuthProfile") or None

    def fetch_jobs(self, user_query: str) -> RotationOutcome:
        return self.executor.call_with_rotation(JOB_SEARCH, self._fetch_jobs, user_query)

    def fetch_job_details(self, job_ciphertext: str) -> RotationOutcome:
        return self.executor.call_with_rotation(JOB_DETAILS, self._fetch_job_details, job_ciphertext)

    def fetch_talent_profile(self, profile_ciphertext: str) -> RotationOutcome:
        return self.executor.call_with_rotation(TALENT_PROFILE, self._fetch_talent_profile, profile_ciphertext)
