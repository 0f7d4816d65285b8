"""
Analysis pipeline: transcript -> prompt -> model reply -> parsed dimensions -> report.
Each call is request-scoped; the analyzer holds no per-request state.
"""
import asyncio
import threading
import time
from typing import Optional

from core.model_client import ModelClient, provider_failure
from exceptions import InvalidInputError, ModelUnavailableError
from logging_config import log_step_start, log_step_complete, log_error, log_debug
from scoring.assembler import assemble_report
from scoring.models import AnalysisReport
from scoring.prompt_builder import build_prompt
from scoring.response_parser import RegexResponseParser, ResponseParser
from scoring.rubric import Rubric, SALES_CALL_RUBRIC

DEFAULT_TIMEOUT_SECONDS = 120.0

COMPONENT = "CallQualityAnalyzer"


class CallQualityAnalyzer:
    """Scores sales-call transcripts with an injected model client."""

    def __init__(self,
                 model_client: ModelClient,
                 rubric: Rubric = SALES_CALL_RUBRIC,
                 parser: Optional[ResponseParser] = None,
                 timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        """Initialize analyzer with its collaborators."""
        self.model_client = model_client
        self.rubric = rubric
        self.parser = parser or RegexResponseParser()
        self.timeout_seconds = timeout_seconds
        self.logger = None

    def set_logger(self, logger):
        """Set logger for this analyzer instance."""
        self.logger = logger

    def analyze(self, transcript: Optional[str]) -> AnalysisReport:
        """
        Analyze a transcript and return the score report.

        Raises:
            InvalidInputError: transcript is missing or blank; the model is not called
            ModelUnavailableError: the model failed or did not answer in time
        """
        prompt = self._prepare(transcript)
        start_time = time.time()
        raw_reply = self._generate_with_deadline(prompt)
        return self._finish(raw_reply, start_time)

    async def analyze_async(self, transcript: Optional[str]) -> AnalysisReport:
        """Async variant of analyze; the pending model call is cancelled on timeout."""
        prompt = self._prepare(transcript)
        start_time = time.time()
        try:
            raw_reply = await asyncio.wait_for(
                self.model_client.agenerate(prompt), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            raise self._timeout_error()
        except ModelUnavailableError as e:
            self._log_failure(e)
            raise
        except Exception as e:
            error = provider_failure(e)
            self._log_failure(error)
            raise error from e
        return self._finish(raw_reply, start_time)

    def _prepare(self, transcript: Optional[str]) -> str:
        if transcript is None or not isinstance(transcript, str) or not transcript.strip():
            error = InvalidInputError("Transcript is empty or missing")
            if self.logger:
                log_error(self.logger, "Rejected analysis request: empty transcript", COMPONENT)
            raise error

        if self.logger:
            log_step_start(
                self.logger,
                COMPONENT,
                "analyze",
                "Starting call analysis",
                {"transcript_chars": len(transcript), "dimensions": len(self.rubric.dimensions)}
            )
        return build_prompt(transcript, self.rubric)

    def _generate_with_deadline(self, prompt: str) -> str:
        # Daemon worker: an abandoned request must not keep the process alive
        outcome = {}
        done = threading.Event()

        def request():
            try:
                outcome["reply"] = self.model_client.generate(prompt)
            except Exception as e:
                outcome["error"] = e
            finally:
                done.set()

        threading.Thread(target=request, name="model-request", daemon=True).start()
        if not done.wait(self.timeout_seconds):
            raise self._timeout_error()

        error = outcome.get("error")
        if isinstance(error, ModelUnavailableError):
            self._log_failure(error)
            raise error
        if error is not None:
            wrapped = provider_failure(error)
            self._log_failure(wrapped)
            raise wrapped from error
        return outcome["reply"]

    def _timeout_error(self) -> ModelUnavailableError:
        error = ModelUnavailableError(
            f"Model did not respond within {self.timeout_seconds:g} seconds",
            reason="timeout",
        )
        self._log_failure(error)
        return error

    def _log_failure(self, error: ModelUnavailableError):
        if self.logger:
            log_error(self.logger, f"Model unavailable: {error.detail}", COMPONENT, error)

    def _finish(self, raw_reply: str, start_time: float) -> AnalysisReport:
        if self.logger:
            log_debug(self.logger, "Received model reply", COMPONENT, {"reply_chars": len(raw_reply)})

        extraction = self.parser.parse(raw_reply, self.rubric)
        report = assemble_report(extraction, self.rubric)

        if self.logger:
            missing = [
                dimension.key for dimension in self.rubric.dimensions
                if extraction.dimensions.get(dimension.key) is None
            ]
            log_step_complete(
                self.logger,
                COMPONENT,
                "analyze",
                "Completed call analysis",
                {
                    "total_score": report.total_score,
                    "defaulted_dimensions": missing,
                    "recommendations_found": extraction.recommendations is not None
                },
                duration_ms=round((time.time() - start_time) * 1000, 2)
            )
        return report
