"""
Unit tests for RecommendationOrchestrator.

Collaborators are the in-memory fakes from tests/mocks; timeouts and retry
delays are shortened so the suite stays fast.
"""
import asyncio
import types
import unittest

import requests

from core.config_loader import FieldMappingConfig
from core.exceptions import (
    EmptyScoringResponseError,
    ErrorKind,
    OperationTimeoutError,
    ScoringServiceUnavailableError,
)
from core.field_mapping import FieldMappingTable
from core.models import PipelineFailure, PipelineStage, RecommendationResult, SaveResult
from core.orchestrator import PipelineSettings, RecommendationOrchestrator
from core.storage_adapter import ModuleStorageAdapter
from tests.mocks.collaborator_mocks import FakeScoring, FakeStorage

FAST_SETTINGS = PipelineSettings(
    storage_timeout_ms=100,
    scoring_timeout_ms=100,
    scoring_max_attempts=2,
    scoring_retry_base_delay_ms=5,
)


class OrchestratorTestCase(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.field_map = FieldMappingTable.from_config(FieldMappingConfig())
        self.storage = FakeStorage()
        self.scoring = FakeScoring()
        self.payload = {"name": "Ada", "sector": "tech"}

    def orchestrator(self, settings=FAST_SETTINGS, storage=None, field_map=None):
        return RecommendationOrchestrator(
            storage=storage or self.storage,
            scoring=self.scoring,
            field_map=field_map or self.field_map,
            settings=settings,
        )


class TestRecommendSuccess(OrchestratorTestCase):

    async def test_end_to_end(self):
        orchestrator = self.orchestrator()
        result = await orchestrator.recommend(self.payload)

        self.assertIsInstance(result, RecommendationResult)
        self.assertEqual(result.candidate_id, "c1")
        self.assertEqual(result.recommendations, [{"title": "Engineer", "score": 0.9}])
        self.assertEqual(result.careers_analyzed, 1)
        self.assertEqual(result.recommendations_generated, 1)
        self.assertGreaterEqual(result.processing_time_ms, 0)
        self.assertEqual(orchestrator.stage, PipelineStage.DONE)

        # Stages ran in order with the saved id flowing downstream
        self.assertEqual(
            [call[0] for call in self.storage.calls],
            ["save_candidate", "fetch_careers", "update_recommendations"],
        )
        self.assertEqual(self.storage.calls[1][1], "tech")
        self.assertEqual(self.storage.recommendations["c1"], result.recommendations)

        submitted_candidate, submitted_careers = self.scoring.calls[0]
        self.assertEqual(submitted_candidate.id, "c1")
        self.assertEqual(submitted_candidate.name, "Ada")
        self.assertEqual(submitted_careers, [{"title": "Engineer"}])

    async def test_response_shape(self):
        result = await self.orchestrator().recommend(self.payload)
        response = result.to_response()

        self.assertEqual(result.status_code, 200)
        self.assertTrue(response["success"])
        self.assertEqual(response["candidateId"], "c1")
        self.assertEqual(response["metadata"], {"careersAnalyzed": 1, "recommendationsGenerated": 1})
        self.assertIn("processingTime", response)

    async def test_empty_recommendations_succeed(self):
        self.scoring.response = []
        result = await self.orchestrator().recommend(self.payload)

        self.assertIsInstance(result, RecommendationResult)
        self.assertEqual(result.recommendations_generated, 0)
        self.assertEqual(self.storage.recommendations["c1"], [])

    async def test_empty_careers_still_scored(self):
        self.storage.careers = []
        result = await self.orchestrator().recommend(self.payload)

        self.assertIsInstance(result, RecommendationResult)
        self.assertEqual(result.careers_analyzed, 0)
        self.assertEqual(self.scoring.call_count, 1)

    async def test_retry_then_success(self):
        self.scoring.errors = [ConnectionRefusedError("refused")]
        result = await self.orchestrator().recommend(self.payload)

        self.assertIsInstance(result, RecommendationResult)
        self.assertEqual(self.scoring.call_count, 2)
        self.assertEqual(self.storage.count("save_candidate"), 1)

    async def test_unmapped_keys_are_kept(self):
        payload = dict(self.payload, skills=["python"], referral="friend")
        await self.orchestrator().recommend(payload)

        candidate = self.storage.saved[0]
        self.assertEqual(candidate.skills, ["python"])
        self.assertEqual(candidate.extra, {"referral": "friend"})

    async def test_custom_field_mapping(self):
        field_map = FieldMappingTable.from_config(
            FieldMappingConfig(candidate={"name": "fullName", "sector": "industry"})
        )
        result = await self.orchestrator(field_map=field_map).recommend(
            {"fullName": "Ada", "industry": "tech"}
        )

        self.assertIsInstance(result, RecommendationResult)
        self.assertEqual(self.storage.saved[0].name, "Ada")
        self.assertEqual(self.storage.calls[1][1], "tech")


class TestRecommendValidation(OrchestratorTestCase):

    async def test_missing_name(self):
        result = await self.orchestrator().recommend({"sector": "tech"})

        self.assertIsInstance(result, PipelineFailure)
        self.assertEqual(result.kind, ErrorKind.VALIDATION)
        self.assertEqual(result.status_code, 400)
        self.assertEqual(result.error, "Validation failed")
        self.assertEqual(result.details, ["Name is required"])
        self.assertIsNone(result.candidate_id)
        self.assertEqual(result.stage, PipelineStage.VALIDATING)
        self.assertEqual(self.storage.calls, [])
        self.assertEqual(self.scoring.call_count, 0)

    async def test_blank_sector(self):
        result = await self.orchestrator().recommend({"name": "Ada", "sector": "   "})

        self.assertEqual(result.kind, ErrorKind.VALIDATION)
        self.assertEqual(result.details, ["Sector is required"])
        self.assertEqual(self.storage.calls, [])

    async def test_both_missing(self):
        result = await self.orchestrator().recommend({})
        self.assertEqual(result.details, ["Name is required", "Sector is required"])

    async def test_non_string_name_and_sector(self):
        result = await self.orchestrator().recommend({"name": {"first": "Ada"}, "sector": ["tech"]})

        self.assertEqual(result.kind, ErrorKind.VALIDATION)
        self.assertEqual(result.status_code, 400)
        self.assertEqual(result.details, ["Name must be a string", "Sector must be a string"])
        self.assertIsNone(result.candidate_id)
        self.assertEqual(self.storage.calls, [])
        self.assertEqual(self.scoring.call_count, 0)

    async def test_non_object_payload(self):
        result = await self.orchestrator().recommend(["Ada", "tech"])

        self.assertEqual(result.kind, ErrorKind.VALIDATION)
        self.assertEqual(self.storage.calls, [])


class TestRecommendFailures(OrchestratorTestCase):

    async def test_save_timeout(self):
        self.storage.delays = {"save_candidate": 0.5}
        result = await self.orchestrator().recommend(self.payload)

        self.assertEqual(result.kind, ErrorKind.TIMEOUT)
        self.assertEqual(result.status_code, 408)
        self.assertEqual(result.stage, PipelineStage.SAVING)
        self.assertIsNone(result.candidate_id)
        self.assertEqual(self.storage.count("fetch_careers"), 0)

    async def test_fetch_timeout_keeps_candidate_id(self):
        self.storage.delays = {"fetch_careers": 0.5}
        orchestrator = self.orchestrator()
        result = await orchestrator.recommend(self.payload)

        self.assertEqual(result.kind, ErrorKind.TIMEOUT)
        self.assertEqual(result.status_code, 408)
        self.assertEqual(result.candidate_id, "c1")
        self.assertEqual(result.stage, PipelineStage.FETCHING_CAREERS)
        self.assertEqual(orchestrator.stage, PipelineStage.FAILED)
        self.assertEqual(self.scoring.call_count, 0)
        self.assertEqual(self.storage.count("update_recommendations"), 0)

    async def test_scoring_connection_refused(self):
        self.scoring.errors = [
            ScoringServiceUnavailableError("refused"),
            ScoringServiceUnavailableError("refused"),
        ]
        result = await self.orchestrator().recommend(self.payload)

        self.assertEqual(result.kind, ErrorKind.CONNECTION_REFUSED)
        self.assertEqual(result.status_code, 503)
        self.assertEqual(result.error, "AI recommendation failed")
        self.assertEqual(result.candidate_id, "c1")
        self.assertEqual(result.stage, PipelineStage.SCORING)
        self.assertEqual(self.scoring.call_count, 2)
        self.assertEqual(self.storage.count("update_recommendations"), 0)

    async def test_raw_transport_errors_are_classified(self):
        self.scoring.errors = [requests.ConnectionError("down"), requests.ConnectionError("down")]
        result = await self.orchestrator().recommend(self.payload)
        self.assertEqual(result.kind, ErrorKind.CONNECTION_REFUSED)

    async def test_scoring_timeout_after_all_attempts(self):
        self.scoring.delay = 0.5
        result = await self.orchestrator().recommend(self.payload)

        self.assertEqual(result.kind, ErrorKind.TIMEOUT)
        self.assertEqual(result.stage, PipelineStage.SCORING)
        self.assertEqual(self.scoring.call_count, 2)
        self.assertEqual(self.storage.count("update_recommendations"), 0)

    async def test_empty_scoring_response(self):
        self.scoring.errors = [EmptyScoringResponseError(200), EmptyScoringResponseError(200)]
        result = await self.orchestrator().recommend(self.payload)

        self.assertEqual(result.kind, ErrorKind.CONTRACT_VIOLATION)
        self.assertEqual(result.status_code, 500)
        self.assertEqual(self.storage.count("update_recommendations"), 0)

    async def test_non_sequence_recommendations(self):
        self.scoring.response = {"title": "Engineer"}
        result = await self.orchestrator().recommend(self.payload)

        self.assertEqual(result.kind, ErrorKind.CONTRACT_VIOLATION)
        self.assertEqual(result.stage, PipelineStage.SCORING)
        self.assertEqual(self.storage.count("update_recommendations"), 0)

    async def test_non_sequence_careers(self):
        self.storage.careers = "Engineer"
        result = await self.orchestrator().recommend(self.payload)

        self.assertEqual(result.kind, ErrorKind.CONTRACT_VIOLATION)
        self.assertEqual(result.stage, PipelineStage.FETCHING_CAREERS)
        self.assertEqual(self.scoring.call_count, 0)

    async def test_missing_storage_id(self):
        self.storage.candidate_id = None
        result = await self.orchestrator().recommend(self.payload)

        self.assertEqual(result.kind, ErrorKind.CONTRACT_VIOLATION)
        self.assertEqual(self.storage.count("fetch_careers"), 0)

    async def test_missing_module_operation(self):
        async def save_candidate(candidate):
            return "c9"

        backend = types.SimpleNamespace(saveCandidate=save_candidate)
        storage = ModuleStorageAdapter(backend, self.field_map)
        result = await self.orchestrator(storage=storage).recommend(self.payload)

        self.assertEqual(result.kind, ErrorKind.CONTRACT_VIOLATION)
        self.assertEqual(result.candidate_id, "c9")
        self.assertEqual(result.stage, PipelineStage.FETCHING_CAREERS)

    async def test_persist_is_not_retried(self):
        self.storage.errors = {"update_recommendations": RuntimeError("write failed")}
        result = await self.orchestrator().recommend(self.payload)

        self.assertEqual(result.kind, ErrorKind.UNKNOWN)
        self.assertEqual(result.status_code, 500)
        self.assertEqual(result.stage, PipelineStage.PERSISTING)
        self.assertEqual(result.candidate_id, "c1")
        self.assertEqual(self.storage.count("update_recommendations"), 1)
        self.assertEqual(self.scoring.call_count, 1)

    async def test_details_hidden_by_default(self):
        self.storage.errors = {"fetch_careers": RuntimeError("db password rejected")}
        result = await self.orchestrator().recommend(self.payload)

        self.assertIsNone(result.details)
        self.assertNotIn("details", result.to_response())

    async def test_details_exposed_when_configured(self):
        self.storage.errors = {"fetch_careers": RuntimeError("db password rejected")}
        settings = PipelineSettings(
            storage_timeout_ms=100,
            scoring_timeout_ms=100,
            scoring_retry_base_delay_ms=5,
            expose_error_details=True,
        )
        result = await self.orchestrator(settings=settings).recommend(self.payload)

        self.assertEqual(result.details, "db password rejected")
        response = result.to_response()
        self.assertFalse(response["success"])
        self.assertEqual(response["type"], "Unknown")
        self.assertEqual(response["candidateId"], "c1")
        self.assertEqual(response["details"], "db password rejected")

    async def test_concurrent_requests_are_independent(self):
        other_storage = FakeStorage(candidate_id="c2")
        first, second = await asyncio.gather(
            self.orchestrator().recommend(self.payload),
            self.orchestrator(storage=other_storage).recommend({"name": "Grace", "sector": "finance"}),
        )
        self.assertEqual(first.candidate_id, "c1")
        self.assertEqual(second.candidate_id, "c2")
        self.assertEqual(other_storage.calls[1][1], "finance")


class TestSaveCandidate(OrchestratorTestCase):

    async def test_save_only(self):
        result = await self.orchestrator().save_candidate(self.payload)

        self.assertIsInstance(result, SaveResult)
        self.assertEqual(result.to_response(), {"success": True, "id": "c1"})
        self.assertEqual([call[0] for call in self.storage.calls], ["save_candidate"])
        self.assertEqual(self.scoring.call_count, 0)

    async def test_save_validation_failure(self):
        result = await self.orchestrator().save_candidate({"name": "Ada"})

        self.assertEqual(result.kind, ErrorKind.VALIDATION)
        self.assertEqual(self.storage.calls, [])

    async def test_save_failure_message(self):
        self.storage.errors = {"save_candidate": OperationTimeoutError("Save candidate", 100)}
        result = await self.orchestrator().save_candidate(self.payload)

        self.assertEqual(result.error, "Failed to save user")
        self.assertEqual(result.status_code, 408)


if __name__ == '__main__':
    unittest.main()
