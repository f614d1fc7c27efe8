import abc
import json
import os
from typing import Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel

from packages.aip_core.domain import InterviewContext
from packages.aip_core.errors import InvalidStateError
from packages.aip_core.logging import get_logger
from packages.aip_code_eval.schema import CodeProblem
from packages.aip_conductor.dto import InterviewBundle
from packages.aip_scoring.schema import CodeSubmission, InterviewResult
from packages.aip_orchestrator.schema import JobPosting

logger = get_logger("aip.orchestrator.repository")

ModelT = TypeVar("ModelT", bound=BaseModel)


class InterviewRepository(abc.ABC):
    """
    Persistence port for the orchestrator.
    Results are write-once: a second save for the same interview is rejected.
    """

    @abc.abstractmethod
    def save_job(self, job: JobPosting) -> None:
        pass

    @abc.abstractmethod
    def get_job(self, job_id: str) -> Optional[JobPosting]:
        pass

    @abc.abstractmethod
    def save_problem(self, problem: CodeProblem) -> None:
        pass

    @abc.abstractmethod
    def get_problem(self, problem_id: str) -> Optional[CodeProblem]:
        pass

    @abc.abstractmethod
    def save_context(self, context: InterviewContext) -> None:
        pass

    @abc.abstractmethod
    def get_context(self, interview_id: str) -> Optional[InterviewContext]:
        pass

    @abc.abstractmethod
    def save_bundle(self, bundle: InterviewBundle) -> None:
        pass

    @abc.abstractmethod
    def get_bundle(self, interview_id: str) -> Optional[InterviewBundle]:
        pass

    @abc.abstractmethod
    def add_code_submission(self, interview_id: str, submission: CodeSubmission) -> None:
        pass

    @abc.abstractmethod
    def list_code_submissions(self, interview_id: str) -> List[CodeSubmission]:
        pass

    @abc.abstractmethod
    def save_result(self, result: InterviewResult) -> None:
        """Raises InvalidStateError if a result for the interview already exists."""
        pass

    @abc.abstractmethod
    def get_result(self, interview_id: str) -> Optional[InterviewResult]:
        pass


class MemoryInterviewRepository(InterviewRepository):
    def __init__(self):
        self.jobs: Dict[str, JobPosting] = {}
        self.problems: Dict[str, CodeProblem] = {}
        self.contexts: Dict[str, InterviewContext] = {}
        self.bundles: Dict[str, InterviewBundle] = {}
        self.submissions: Dict[str, List[CodeSubmission]] = {}
        self.results: Dict[str, InterviewResult] = {}

    def save_job(self, job: JobPosting) -> None:
        self.jobs[job.id] = job

    def get_job(self, job_id: str) -> Optional[JobPosting]:
        return self.jobs.get(job_id)

    def save_problem(self, problem: CodeProblem) -> None:
        self.problems[problem.id] = problem

    def get_problem(self, problem_id: str) -> Optional[CodeProblem]:
        return self.problems.get(problem_id)

    def save_context(self, context: InterviewContext) -> None:
        self.contexts[context.interview_id] = context

    def get_context(self, interview_id: str) -> Optional[InterviewContext]:
        return self.contexts.get(interview_id)

    def save_bundle(self, bundle: InterviewBundle) -> None:
        self.bundles[bundle.interview_id] = bundle

    def get_bundle(self, interview_id: str) -> Optional[InterviewBundle]:
        return self.bundles.get(interview_id)

    def add_code_submission(self, interview_id: str, submission: CodeSubmission) -> None:
        self.submissions.setdefault(interview_id, []).append(submission)

    def list_code_submissions(self, interview_id: str) -> List[CodeSubmission]:
        return list(self.submissions.get(interview_id, []))

    def save_result(self, result: InterviewResult) -> None:
        if result.interview_id in self.results:
            raise InvalidStateError("Interview result already stored", details={"interview_id": result.interview_id})
        self.results[result.interview_id] = result

    def get_result(self, interview_id: str) -> Optional[InterviewResult]:
        return self.results.get(interview_id)


class JsonFileInterviewRepository(InterviewRepository):
    """
    File-based implementation.
    One JSON file per record: {base_dir}/{kind}/{id}.json
    """

    def __init__(self, base_dir: str = "data/interviews"):
        self.base_dir = base_dir
        for kind in ("jobs", "problems", "contexts", "bundles", "submissions", "results"):
            os.makedirs(os.path.join(self.base_dir, kind), exist_ok=True)

    def _path(self, kind: str, record_id: str) -> str:
        safe_id = record_id.replace(os.sep, "_")
        return os.path.join(self.base_dir, kind, f"{safe_id}.json")

    def _write(self, kind: str, record_id: str, data) -> None:
        filepath = self._path(kind, record_id)
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def _read(self, kind: str, record_id: str):
        filepath = self._path(kind, record_id)
        if not os.path.exists(filepath):
            return None
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)

    def _load(self, kind: str, record_id: str, model: Type[ModelT]) -> Optional[ModelT]:
        data = self._read(kind, record_id)
        return model.model_validate(data) if data is not None else None

    def save_job(self, job: JobPosting) -> None:
        self._write("jobs", job.id, job.model_dump(mode="json", by_alias=True))

    def get_job(self, job_id: str) -> Optional[JobPosting]:
        return self._load("jobs", job_id, JobPosting)

    def save_problem(self, problem: CodeProblem) -> None:
        self._write("problems", problem.id, problem.model_dump(mode="json", by_alias=True))

    def get_problem(self, problem_id: str) -> Optional[CodeProblem]:
        return self._load("problems", problem_id, CodeProblem)

    def save_context(self, context: InterviewContext) -> None:
        self._write("contexts", context.interview_id, context.model_dump(mode="json", by_alias=True))

    def get_context(self, interview_id: str) -> Optional[InterviewContext]:
        return self._load("contexts", interview_id, InterviewContext)

    def save_bundle(self, bundle: InterviewBundle) -> None:
        self._write("bundles", bundle.interview_id, bundle.model_dump(mode="json", by_alias=True))

    def get_bundle(self, interview_id: str) -> Optional[InterviewBundle]:
        return self._load("bundles", interview_id, InterviewBundle)

    def add_code_submission(self, interview_id: str, submission: CodeSubmission) -> None:
        existing = self._read("submissions", interview_id) or []
        existing.append(submission.model_dump(mode="json", by_alias=True))
        self._write("submissions", interview_id, existing)

    def list_code_submissions(self, interview_id: str) -> List[CodeSubmission]:
        return [CodeSubmission.model_validate(item) for item in self._read("submissions", interview_id) or []]

    def save_result(self, result: InterviewResult) -> None:
        if os.path.exists(self._path("results", result.interview_id)):
            raise InvalidStateError("Interview result already stored", details={"interview_id": result.interview_id})
        self._write("results", result.interview_id, result.model_dump(mode="json"))
        logger.info(f"Stored result for interview {result.interview_id}")

    def get_result(self, interview_id: str) -> Optional[InterviewResult]:
        return self._load("results", interview_id, InterviewResult)
