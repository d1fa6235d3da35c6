"""
Concurrent signal collection.

Signal analyzers are independent, so they are issued concurrently and
joined before fusion. A collector failure never aborts the invocation;
its slot is filled with a low-confidence placeholder so the decision still
lists every attempted signal.
"""
import asyncio
import inspect
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List, Sequence, Union

from screenfuse.core.errors import SignalUnavailable
from screenfuse.core.logging import get_logger
from screenfuse.signals.models import (
    DEFAULT_FALLBACK_LABEL,
    PLACEHOLDER_CONFIDENCE,
    SignalKind,
    SignalResult,
)

logger = get_logger("signals.collector")


class SignalCollector(ABC):
    """
    Interface implemented by external analyzers.
    
    One collector per signal kind; `collect` must return a SignalResult for
    that kind or raise.
    """
    
    kind: SignalKind
    
    @abstractmethod
    async def collect(self, item: Any) -> SignalResult:
        pass


class FunctionCollector(SignalCollector):
    """Adapts a plain sync or async callable to the collector interface."""
    
    def __init__(
        self,
        kind: SignalKind,
        func: Callable[[Any], Union[SignalResult, Awaitable[SignalResult]]]
    ):
        self.kind = kind
        self.func = func
    
    async def collect(self, item: Any) -> SignalResult:
        if inspect.iscoroutinefunction(self.func):
            return await self.func(item)
        # Blocking analyzers run off the event loop
        result = await asyncio.to_thread(self.func, item)
        if inspect.isawaitable(result):
            result = await result
        return result


class SignalGatherer:
    """Runs collectors concurrently and degrades failures to placeholders."""
    
    def __init__(
        self,
        timeout: float = 5.0,
        fallback_label: str = DEFAULT_FALLBACK_LABEL,
        placeholder_confidence: float = PLACEHOLDER_CONFIDENCE
    ):
        self.timeout = timeout
        self.fallback_label = fallback_label
        self.placeholder_confidence = placeholder_confidence
    
    async def gather(
        self,
        item: Any,
        collectors: Sequence[SignalCollector]
    ) -> List[SignalResult]:
        """
        Collect every signal for an item.
        
        Returns one result per collector, in collector order.
        """
        if not collectors:
            return []
        
        start = time.perf_counter()
        results = await asyncio.gather(
            *(self._collect_one(collector, item) for collector in collectors)
        )
        
        degraded = sum(1 for r in results if r.degraded)
        logger.debug(
            f"Collected {len(results)} signals ({degraded} degraded) "
            f"in {(time.perf_counter() - start) * 1000:.1f}ms"
        )
        return list(results)
    
    async def _collect_one(self, collector: SignalCollector, item: Any) -> SignalResult:
        try:
            try:
                result = await asyncio.wait_for(collector.collect(item), timeout=self.timeout)
            except asyncio.TimeoutError:
                raise SignalUnavailable(collector.kind.value, f"timed out after {self.timeout}s")
            except asyncio.CancelledError:
                task = asyncio.current_task()
                if task is not None and task.cancelling():
                    # The whole invocation is being cancelled, not just this collector
                    raise
                raise SignalUnavailable(collector.kind.value, "cancelled")
            except SignalUnavailable:
                raise
            except Exception as e:
                raise SignalUnavailable(collector.kind.value, f"{type(e).__name__}: {e}")
            
            if not isinstance(result, SignalResult):
                raise SignalUnavailable(collector.kind.value, "collector returned no SignalResult")
            if result.signal != collector.kind:
                raise SignalUnavailable(
                    collector.kind.value,
                    f"collector returned a '{result.signal.value}' result"
                )
            return result
        
        except SignalUnavailable as e:
            logger.warning(str(e))
            return SignalResult.placeholder(
                collector.kind,
                e.reason,
                label=self.fallback_label,
                confidence=self.placeholder_confidence
            )
