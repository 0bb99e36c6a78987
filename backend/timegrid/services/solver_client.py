from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from timegrid.core.exceptions import SolverUnavailableError, UpstreamSolverError
from timegrid.schemas.timetable import Solution, Timetable

logger = logging.getLogger(__name__)

TERMINAL_SOLVER_STATUS = "NOT_SOLVING"


@dataclass(frozen=True)
class JobIdParsed:
    job_id: str


@dataclass(frozen=True)
class JobIdParseError:
    reason: str


def parse_submit_response(text: str) -> JobIdParsed | JobIdParseError:
    """Read the job id out of a submit response.

    A body starting with `{` must be a JSON object carrying `jobId`; any other
    non-empty body is the job id itself.
    """
    body = (text or "").strip()
    if not body:
        return JobIdParseError("Solver returned an empty submit response")
    if not body.startswith("{"):
        return JobIdParsed(body)
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        return JobIdParseError(f"Solver returned malformed JSON: {exc.msg}")
    job_id = payload.get("jobId") if isinstance(payload, dict) else None
    if job_id is None or not str(job_id).strip():
        return JobIdParseError("Solver response JSON has no jobId")
    return JobIdParsed(str(job_id).strip())


class SolverClient:
    """Async client for the external timetable solver service."""

    def __init__(self, base_url: str, timeout: float = 30.0, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.request(method, path, **kwargs)
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            logger.warning("SOLVER UNAVAILABLE | method=%s | path=%s | error=%s", method, path, exc)
            raise SolverUnavailableError(
                "Timetable solver service unavailable",
                details={"solver_url": self.base_url, "error": str(exc)},
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamSolverError(
                "Solver request failed",
                details={"solver_url": self.base_url, "error": str(exc)},
            ) from exc

        if not response.is_success:
            logger.warning(
                "SOLVER ERROR RESPONSE | method=%s | path=%s | status=%s",
                method,
                path,
                response.status_code,
            )
            raise UpstreamSolverError(
                f"{method} {path} failed with status {response.status_code}",
                details={"status_code": response.status_code, "body": response.text},
            )
        return response

    async def _get_json(self, path: str) -> object:
        response = await self._request("GET", path)
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamSolverError(
                f"Solver returned a non-JSON body for {path}",
                details={"status_code": response.status_code, "body": response.text},
            ) from exc

    async def submit(self, timetable: Timetable) -> str:
        response = await self._request(
            "POST",
            "/timetables",
            content=timetable.model_dump_json(),
            headers={"Content-Type": "application/json"},
        )
        parsed = parse_submit_response(response.text)
        if isinstance(parsed, JobIdParseError):
            raise UpstreamSolverError(parsed.reason, details={"body": response.text})
        logger.info("SOLVER SUBMITTED | job_id=%s | lessons=%s", parsed.job_id, len(timetable.lessons))
        return parsed.job_id

    async def status(self, job_id: str) -> dict:
        payload = await self._get_json(f"/timetables/{quote(job_id, safe='')}/status")
        if not isinstance(payload, dict):
            raise UpstreamSolverError("Solver status response is not a JSON object", details={"body": payload})
        return payload

    async def fetch_solution(self, job_id: str) -> Solution:
        payload = await self._get_json(f"/timetables/{quote(job_id, safe='')}")
        try:
            return Solution.model_validate(payload)
        except ValidationError as exc:
            raise UpstreamSolverError(
                "Solver returned a solution that does not match the timetable model",
                details={"errors": [{"loc": list(error["loc"]), "msg": error["msg"]} for error in exc.errors()]},
            ) from exc
