"""
History Buffer - Circular buffer of analysis results
"""

import logging
from collections import Counter, deque
from datetime import datetime, timedelta
from threading import RLock
from typing import Any, Dict, Iterable, List, Optional

from core.constants import HistoryConstants
from core.enums import AnalysisStatus
from schemas import AnalysisResult

logger = logging.getLogger(__name__)


class AnalysisHistory:
    """Circular buffer for maintaining analysis history"""

    def __init__(self, max_size: int = HistoryConstants.DEFAULT_BUFFER_SIZE):
        """
        Initialize Analysis History

        Args:
            max_size: Maximum number of results to keep
        """
        self.max_size = max_size
        self.buffer: deque = deque(maxlen=max_size)

        # Thread safety (RLock allows reentrant locking)
        self.lock = RLock()

        logger.info(f"Analysis History initialized with max size: {max_size}")

    def add_results(self, results: Iterable[AnalysisResult]) -> List[str]:
        """
        Append results in the given order.

        Args:
            results: Successful analysis results

        Returns:
            IDs of the added results
        """
        with self.lock:
            added = []
            for result in results:
                self.buffer.append(result)
                added.append(result.id)

            if added:
                logger.debug(f"Added {len(added)} results to history")
            return added

    def get(self, result_id: str) -> Optional[AnalysisResult]:
        """Get specific result by ID"""
        with self.lock:
            for result in self.buffer:
                if result.id == result_id:
                    return result
        return None

    def get_recent(
        self,
        limit: int = HistoryConstants.DEFAULT_RECENT_LIMIT,
        status_filter: Optional[AnalysisStatus] = None,
    ) -> List[AnalysisResult]:
        """
        Get recent results

        Args:
            limit: Maximum number of records to return
            status_filter: Only return results with this status

        Returns:
            Results, newest first
        """
        with self.lock:
            results = list(self.buffer)

            if status_filter:
                results = [r for r in results if r.status == status_filter]

            # deque order is insertion order; newest last
            results.reverse()
            return results[:limit]

    def delete(self, result_ids: Iterable[str]) -> int:
        """
        Delete results by ID. Unknown IDs are ignored.

        Returns:
            Number of results removed
        """
        doomed = set(result_ids)
        with self.lock:
            kept = [r for r in self.buffer if r.id not in doomed]
            removed = len(self.buffer) - len(kept)

            self.buffer.clear()
            self.buffer.extend(kept)

            logger.info(f"Deleted {removed} history records")
            return removed

    def clear(self):
        """Clear all history"""
        with self.lock:
            self.buffer.clear()
            logger.info("Analysis history cleared")

    def get_statistics(self) -> Dict[str, Any]:
        """Get history statistics"""
        with self.lock:
            total = len(self.buffer)
            counts = Counter(r.status for r in self.buffer)

            if total == 0:
                avg_confidence = 0.0
            else:
                avg_confidence = round(sum(r.confidence for r in self.buffer) / total, 2)

            recent_cutoff = datetime.now() - timedelta(hours=1)
            recent = sum(1 for r in self.buffer if r.timestamp > recent_cutoff)

            return {
                "total": total,
                "completed": counts.get(AnalysisStatus.COMPLETED, 0),
                "pending": counts.get(AnalysisStatus.PENDING, 0),
                "failed": counts.get(AnalysisStatus.FAILED, 0),
                "avg_confidence": avg_confidence,
                "labels": dict(Counter(r.label for r in self.buffer).most_common(5)),
                "recent_hour": recent,
                "buffer_usage": total,
                "buffer_max": self.max_size,
            }

    def export_to_dict(self) -> Dict[str, Any]:
        """Export history to dictionary"""
        with self.lock:
            return {
                "results": [r.model_dump(mode="json") for r in self.buffer],
                "statistics": self.get_statistics(),
            }
