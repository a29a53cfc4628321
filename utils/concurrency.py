"""
Concurrency management utilities
"""

import asyncio
import logging
from typing import Dict, Any, Iterable, List, Optional, Tuple, Union

from core.config_types import ConcurrencyConfig
from core.exceptions import SLPCraftyError
from core.protocol import MinecraftProtocol
from core.status import ServerStatus

logger = logging.getLogger(__name__)

Target = Tuple[str, int]
QueryOutcome = Union[ServerStatus, SLPCraftyError]

class QueryPool:
    """Runs independent status queries with a cap on how many are in flight"""

    def __init__(self, protocol: Optional[MinecraftProtocol] = None,
                 config: Optional[ConcurrencyConfig] = None):
        self.protocol = protocol or MinecraftProtocol()
        self.config = config or ConcurrencyConfig()
        self.semaphore = asyncio.Semaphore(self.config.max_concurrent)
        self.active_queries = 0
        self.peak_active = 0
        self.total_queries = 0
        self.failed_queries = 0

    async def query(self, address: str, port: int,
                    timeout: Optional[float] = None) -> ServerStatus:
        """Query one server once a slot is free"""
        async with self.semaphore:
            self.active_queries += 1
            self.total_queries += 1
            self.peak_active = max(self.peak_active, self.active_queries)
            try:
                return await self.protocol.query(address, port, timeout)
            except SLPCraftyError:
                self.failed_queries += 1
                raise
            finally:
                self.active_queries -= 1

    async def query_many(self, targets: Iterable[Target],
                         timeout: Optional[float] = None) -> Dict[Target, QueryOutcome]:
        """Query every target; each maps to its status or the error it failed with.

        Errors other than query failures (bad arguments, cancellation)
        propagate to the caller.
        """
        target_list: List[Target] = list(dict.fromkeys(targets))
        results = await asyncio.gather(
            *(self._query_outcome(address, port, timeout) for address, port in target_list)
        )
        return dict(zip(target_list, results))

    async def _query_outcome(self, address: str, port: int,
                             timeout: Optional[float]) -> QueryOutcome:
        try:
            return await self.query(address, port, timeout)
        except SLPCraftyError as e:
            return e

    def get_stats(self) -> Dict[str, Any]:
        """Get query pool statistics"""
        return {
            'active_queries': self.active_queries,
            'peak_active': self.peak_active,
            'total_queries': self.total_queries,
            'failed_queries': self.failed_queries,
            'max_concurrent': self.config.max_concurrent,
            'success_rate': (
                (self.total_queries - self.failed_queries) /
                max(self.total_queries, 1)
            ) * 100
        }
