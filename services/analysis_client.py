"""
Analysis clients - the external analysis collaborator.

AnalysisClient talks to a remote analyzer node over HTTP; SimulatedAnalyzer
produces deterministic results from image statistics for development.
"""

import asyncio
import logging
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np
import requests

from api.exceptions import AnalysisFailedException, BatchDispatchException
from core.constants import AnalysisConstants, ImageConstants
from core.enums import AnalysisStatus
from core.image.converters import ImageConverters
from schemas import AnalysisResult

logger = logging.getLogger(__name__)


class AnalysisClient:
    """
    HTTP client for the remote analyzer.

    ``analyze`` is blocking; the batch dispatcher runs it in worker threads.
    ``requests.Session`` is not thread-safe, so each worker thread gets its
    own pooled session. An injected session is used as-is from every thread
    and must tolerate that.
    """

    def __init__(
        self,
        base_url: str = AnalysisConstants.DEFAULT_ANALYZER_URL,
        analyze_path: str = AnalysisConstants.ANALYZE_PATH,
        health_path: str = AnalysisConstants.HEALTH_PATH,
        timeout: float = AnalysisConstants.DEFAULT_REQUEST_TIMEOUT_SECONDS,
        jpeg_quality: int = ImageConstants.SNAPSHOT_JPEG_QUALITY,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.analyze_path = analyze_path
        self.health_path = health_path
        self.timeout = timeout
        self.jpeg_quality = jpeg_quality

        self._shared_session = session
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._sessions_lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        """Session for the calling thread"""
        if self._shared_session is not None:
            return self._shared_session

        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    @property
    def analyze_url(self) -> str:
        return f"{self.base_url}{self.analyze_path}"

    @property
    def health_url(self) -> str:
        return f"{self.base_url}{self.health_path}"

    def check_connection(self) -> None:
        """
        Verify that the analyzer node is reachable.

        Raises:
            BatchDispatchException: If the node cannot be reached or is unhealthy
        """
        try:
            response = self.session.get(
                self.health_url, timeout=AnalysisConstants.HEALTH_TIMEOUT_SECONDS
            )
        except requests.RequestException as e:
            raise BatchDispatchException(f"analyzer unreachable at {self.base_url}: {e}") from e

        if response.status_code != 200:
            raise BatchDispatchException(
                f"analyzer health check returned HTTP {response.status_code}"
            )

    def analyze(self, image: np.ndarray) -> AnalysisResult:
        """
        Send one image to the analyzer.

        Args:
            image: BGR image buffer

        Returns:
            AnalysisResult (image_id is filled in by the dispatcher)

        Raises:
            AnalysisFailedException: On transport errors, non-2xx replies or malformed bodies
        """
        jpeg = ImageConverters.encode_jpeg(image, quality=self.jpeg_quality)
        payload = {
            "image": ImageConverters.to_base64(jpeg),
            "format": "jpeg",
            "width": int(image.shape[1]),
            "height": int(image.shape[0]),
        }

        try:
            response = self.session.post(self.analyze_url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise AnalysisFailedException(f"request to analyzer failed: {e}") from e

        if not response.ok:
            raise AnalysisFailedException(
                f"analyzer returned HTTP {response.status_code}",
                details={"status_code": response.status_code, "body": response.text[:200]},
            )

        try:
            body = response.json()
        except ValueError as e:
            raise AnalysisFailedException("analyzer returned invalid JSON") from e

        return self.parse_result(body)

    @staticmethod
    def parse_result(body: Dict[str, Any]) -> AnalysisResult:
        """
        Map an analyzer reply onto an AnalysisResult.

        Accepts both ``label`` and the analyzer's ``bacteriaType`` key.
        """
        if not isinstance(body, dict):
            raise AnalysisFailedException("analyzer reply is not a JSON object")

        label = body.get("label") or body.get("bacteriaType") or AnalysisConstants.UNKNOWN_LABEL
        fields: Dict[str, Any] = {
            "label": label,
            "confidence": body.get("confidence", 0.0),
            "status": body.get("status", AnalysisStatus.COMPLETED.value),
            "details": body.get("details") or {},
        }
        if body.get("id"):
            fields["id"] = str(body["id"])

        timestamp = body.get("timestamp")
        if timestamp:
            try:
                parsed = datetime.fromisoformat(str(timestamp).replace("Z", "+00:00"))
            except ValueError:
                logger.warning(f"Ignoring unparseable analyzer timestamp: {timestamp}")
            else:
                if parsed.tzinfo is not None:
                    parsed = parsed.astimezone().replace(tzinfo=None)
                fields["timestamp"] = parsed

        try:
            return AnalysisResult(**fields)
        except ValueError as e:
            raise AnalysisFailedException(f"malformed analyzer reply: {e}") from e

    def close(self) -> None:
        if self._shared_session is not None:
            self._shared_session.close()

        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
        self._local = threading.local()


class SimulatedAnalyzer:
    """Deterministic stand-in for the analyzer node"""

    LABELS = ["E. coli", "S. aureus", "B. subtilis", "P. aeruginosa"]

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.calls = 0

    async def check_connection(self) -> None:
        return None

    async def analyze(self, image: np.ndarray) -> AnalysisResult:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)

        mean = float(image.mean())
        spread = float(image.std())
        label = self.LABELS[int(mean) % len(self.LABELS)]
        confidence = round(70.0 + spread % 30.0, 1)

        return AnalysisResult(
            label=label,
            confidence=confidence,
            status=AnalysisStatus.COMPLETED,
            details={
                "mean_intensity": round(mean, 2),
                "width": int(image.shape[1]),
                "height": int(image.shape[0]),
                "simulated": True,
            },
        )

    def close(self) -> None:
        return None
