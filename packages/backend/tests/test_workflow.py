from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import pytest

from erp_backend.workflow.mapper import ApproveHistoryGatewayMapper, EndNodeMapper, StartNodeMapper
from erp_backend.workflow.models import ApproveHistoryGatewayEntity, EndNodeEntity, StartNodeEntity
from erp_backend.workflow.service import StaleNodeError, WorkflowNodeService

NOW = datetime(2021, 11, 4, 14, 56, 40)


class TestMemoryMapper:
    def setup_method(self):
        self.mapper = ApproveHistoryGatewayMapper(clock=lambda: NOW)

    def test_insert_assigns_id_and_audit_fields(self):
        entity = ApproveHistoryGatewayEntity(process_id=1, approve_action="agree")
        assert self.mapper.insert(entity) == 1
        assert entity.id == 1
        assert entity.version_num == 1
        assert entity.create_time == NOW
        assert self.mapper.select_by_id(1) == entity

    def test_insert_duplicate_id(self):
        self.mapper.insert(ApproveHistoryGatewayEntity(id=5))
        assert self.mapper.insert(ApproveHistoryGatewayEntity(id=5)) == 0

    def test_returned_rows_are_copies(self):
        self.mapper.insert(ApproveHistoryGatewayEntity(approve_comment="ok"))
        row = self.mapper.select_by_id(1)
        row.approve_comment = "changed"
        assert self.mapper.select_by_id(1).approve_comment == "ok"

    def test_select_list_and_count(self):
        for action in ("agree", "reject", "agree"):
            self.mapper.insert(ApproveHistoryGatewayEntity(approve_action=action))
        agreed = self.mapper.select_list(lambda row: row.approve_action == "agree")
        assert [row.id for row in agreed] == [1, 3]
        assert self.mapper.select_count() == 3
        assert [row.id for row in self.mapper.select_batch_ids([3, 9, 1])] == [3, 1]

    def test_update_skips_null_fields_and_bumps_version(self):
        self.mapper.insert(ApproveHistoryGatewayEntity(approver_num="E1", approve_comment="first"))
        change = ApproveHistoryGatewayEntity(id=1, approve_comment="second", version_num=1)
        assert self.mapper.update_by_id(change) == 1
        stored = self.mapper.select_by_id(1)
        assert stored.approver_num == "E1"
        assert stored.approve_comment == "second"
        assert stored.version_num == 2
        assert change.version_num == 2

    def test_update_with_stale_version(self):
        self.mapper.insert(ApproveHistoryGatewayEntity())
        assert self.mapper.update_by_id(ApproveHistoryGatewayEntity(id=1, version_num=7)) == 0

    def test_update_missing(self):
        assert self.mapper.update_by_id(ApproveHistoryGatewayEntity(id=1)) == 0
        assert self.mapper.update_by_id(ApproveHistoryGatewayEntity()) == 0

    def test_reads_during_concurrent_writes(self):
        def write(i):
            self.mapper.insert(ApproveHistoryGatewayEntity(approve_action="agree"))
            if i % 3 == 0:
                self.mapper.delete_by_id(i + 1)

        def read(_):
            return len(self.mapper.select_list()), self.mapper.select_count()

        with ThreadPoolExecutor(max_workers=8) as pool:
            writes = [pool.submit(write, i) for i in range(300)]
            reads = [pool.submit(read, i) for i in range(300)]
            for future in writes + reads:
                future.result()
        assert self.mapper.select_count() == len(self.mapper.select_list())

    def test_delete(self):
        self.mapper.insert(ApproveHistoryGatewayEntity())
        assert self.mapper.delete_by_id(1) == 1
        assert self.mapper.delete_by_id(1) == 0
        assert self.mapper.select_by_id(1) is None


class TestWorkflowNodeService:
    @pytest.fixture
    def service(self, caching):
        start_nodes = StartNodeMapper(clock=lambda: NOW)
        end_nodes = EndNodeMapper(clock=lambda: NOW)
        start_nodes.insert(StartNodeEntity(node_code="S", node_name="start"))
        end_nodes.insert(EndNodeEntity(node_code="E", node_name="end"))
        return WorkflowNodeService(caching, start_nodes, end_nodes)

    def test_get_start_node_is_cached(self, service, memory_backend):
        node = service.get_start_node(1)
        assert node.node_code == "S"
        key = "workflow::erp_backend.workflow.service.WorkflowNodeServicefind_start_node1"
        assert memory_backend.get(key) is not None
        assert service.get_start_node(1) == node

    def test_missing_node_not_cached(self, service, memory_backend):
        assert service.get_end_node(99) is None
        assert len(memory_backend) == 0

    def test_update_evicts(self, service):
        node = service.get_start_node(1)
        node.node_name = "renamed"
        service.update_start_node(node)
        assert service.get_start_node(1).node_name == "renamed"

    def test_stale_update_keeps_cache(self, service, memory_backend):
        service.get_end_node(1)
        with pytest.raises(StaleNodeError):
            service.update_end_node(EndNodeEntity(id=1, node_name="x", version_num=5))
        assert len(memory_backend) == 1
        assert service.get_end_node(1).node_name == "end"
