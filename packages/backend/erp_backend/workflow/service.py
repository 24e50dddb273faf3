from __future__ import annotations

import logging

from erp_backend.cache.decorators import CacheInterceptor
from erp_backend.workflow.mapper import BaseMapper
from erp_backend.workflow.models import EndNodeEntity, StartNodeEntity

logger = logging.getLogger(__name__)

WORKFLOW_CACHE = "workflow"


class StaleNodeError(Exception):
    """The node was changed by someone else since it was read."""


class WorkflowNodeService:
    """Start/end node lookups, read through the ``workflow`` cache."""

    def __init__(
        self,
        caching: CacheInterceptor,
        start_nodes: BaseMapper[StartNodeEntity],
        end_nodes: BaseMapper[EndNodeEntity],
    ) -> None:
        self._start_nodes = start_nodes
        self._end_nodes = end_nodes
        self.get_start_node = caching.cacheable(WORKFLOW_CACHE)(self.find_start_node)
        self.get_end_node = caching.cacheable(WORKFLOW_CACHE)(self.find_end_node)
        self.update_start_node = caching.cache_evict(
            WORKFLOW_CACHE,
            key=lambda node: caching.key_for(self, self.find_start_node, node.id),
        )(self._update_start_node)
        self.update_end_node = caching.cache_evict(
            WORKFLOW_CACHE,
            key=lambda node: caching.key_for(self, self.find_end_node, node.id),
        )(self._update_end_node)

    def find_start_node(self, node_id: int) -> StartNodeEntity | None:
        return self._start_nodes.select_by_id(node_id)

    def find_end_node(self, node_id: int) -> EndNodeEntity | None:
        return self._end_nodes.select_by_id(node_id)

    def _update_start_node(self, node: StartNodeEntity) -> StartNodeEntity:
        if not self._start_nodes.update_by_id(node):
            logger.info("start node %s not updated: missing or stale", node.id)
            raise StaleNodeError(f"start node {node.id} is missing or stale")
        return node

    def _update_end_node(self, node: EndNodeEntity) -> EndNodeEntity:
        if not self._end_nodes.update_by_id(node):
            logger.info("end node %s not updated: missing or stale", node.id)
            raise StaleNodeError(f"end node {node.id} is missing or stale")
        return node
