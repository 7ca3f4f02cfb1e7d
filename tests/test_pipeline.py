"""Tests for the verification pipeline, session and refresh helpers."""

import asyncio

import pytest

from proof_builders import make_artifact, partial_artifact, salted_leaf

from chiastamp.codes import FailureReason, StepLabel
from chiastamp.contracts import Position, ProofStep
from chiastamp.kernel.hash_utils import InvalidHexError
from chiastamp.kernel.outcome import VerificationOutcome, VerificationResults
from chiastamp.kernel.pipeline import (
    LOCAL_PROOF_SKIPPED_FILE_HASH,
    ON_CHAIN_SKIPPED_FILE_HASH,
    ON_CHAIN_SKIPPED_LOCAL_PROOF,
    VerificationSession,
    can_refresh,
    check_file_hash,
    compute_file_digest,
    digest_error_results,
    proofs_differ,
    run_pipeline,
)

ANCHORED = VerificationOutcome.success(StepLabel.ON_CHAIN.value, "anchored", block_index=1, timestamp=2)


class AnchorSpy:
    def __init__(self, outcome=ANCHORED):
        self.outcome = outcome
        self.calls = []

    async def __call__(self, artifact):
        self.calls.append(artifact)
        return self.outcome


class TestComputeFileDigest:
    def test_salted_artifact_uses_salt(self, content, artifact):
        assert compute_file_digest(content, artifact) == salted_leaf(content, artifact.salt)

    def test_legacy_artifact_uses_plain_digest(self, content):
        legacy = make_artifact(content, salt=None)
        assert compute_file_digest(content, legacy) == salted_leaf(content, None)

    def test_bad_salt_raises(self, content):
        with pytest.raises(InvalidHexError):
            compute_file_digest(content, make_artifact(content).model_copy(update={"salt": "xyz"}))


class TestCheckFileHash:
    def test_case_insensitive(self, artifact):
        result = check_file_hash(artifact.leaf_hash.upper(), artifact)
        assert result.passed is True
        assert result.step == StepLabel.SALTED_FILE_HASH.value

    def test_legacy_label(self, content):
        legacy = make_artifact(content, salt=None)
        result = check_file_hash(legacy.leaf_hash, legacy)
        assert result.step == StepLabel.FILE_HASH.value

    def test_mismatch_is_invalid_data(self, artifact):
        result = check_file_hash("00" * 32, artifact)
        assert result.passed is False
        assert result.failure_reason == FailureReason.INVALID_DATA
        assert artifact.leaf_hash in result.message


class TestRunPipeline:
    @pytest.mark.asyncio
    async def test_all_stages_pass(self, content, artifact):
        anchor = AnchorSpy()
        results = await run_pipeline(compute_file_digest(content, artifact), artifact, anchor)
        assert results.passed is True
        assert results.file_hash_match.passed
        assert results.local_proof.step == StepLabel.LOCAL_PROOF_MULTI.value
        assert results.on_chain_anchor is ANCHORED
        assert anchor.calls == [artifact]

    @pytest.mark.asyncio
    async def test_file_hash_failure_fills_placeholders(self, artifact):
        anchor = AnchorSpy()
        results = await run_pipeline("00" * 32, artifact, anchor)
        assert len(results.slots()) == 3
        assert results.file_hash_match.passed is False
        assert results.local_proof.passed is False
        assert results.local_proof.message == "cannot verify local proof: file hash does not match"
        assert results.on_chain_anchor.passed is False
        assert results.on_chain_anchor.message == "cannot verify on-chain: file hash does not match"
        assert anchor.calls == []

    @pytest.mark.asyncio
    async def test_local_proof_failure_skips_anchor(self, content, artifact):
        steps = list(artifact.proof)
        flipped = Position.LEFT if steps[0].position == Position.RIGHT else Position.RIGHT
        steps[0] = ProofStep(hash=steps[0].hash, position=flipped)
        tampered = artifact.model_copy(update={"proof": steps})
        anchor = AnchorSpy()

        results = await run_pipeline(compute_file_digest(content, tampered), tampered, anchor)
        assert results.file_hash_match.passed is True
        assert results.local_proof.passed is False
        assert results.on_chain_anchor.message == "cannot verify on-chain: local proof is invalid"
        assert results.on_chain_anchor.message == ON_CHAIN_SKIPPED_LOCAL_PROOF
        assert anchor.calls == []

    @pytest.mark.asyncio
    async def test_single_leaf_proof(self, content):
        leaf = salted_leaf(content, "ab" * 32)
        single = make_artifact(content).model_copy(update={"proof": [], "root_hash": leaf.upper()})
        results = await run_pipeline(leaf, single, AnchorSpy())
        assert results.local_proof.passed is True
        assert results.local_proof.step == StepLabel.LOCAL_PROOF_SINGLE.value

    @pytest.mark.asyncio
    async def test_anchor_failure_is_reported_as_is(self, content, artifact):
        failed = VerificationOutcome.failure(StepLabel.ON_CHAIN.value, "down", FailureReason.API_ERROR)
        results = await run_pipeline(compute_file_digest(content, artifact), artifact, AnchorSpy(failed))
        assert results.passed is False
        assert results.on_chain_anchor is failed


def test_digest_error_results_has_three_slots(artifact):
    results = digest_error_results(artifact, InvalidHexError("odd length"))
    assert results.file_hash_match.failure_reason == FailureReason.INVALID_DATA
    assert "odd length" in results.file_hash_match.message
    assert results.local_proof.message == LOCAL_PROOF_SKIPPED_FILE_HASH
    assert results.on_chain_anchor.message == ON_CHAIN_SKIPPED_FILE_HASH


def _results(file_ok=True, local_ok=True, chain=None):
    def outcome(ok):
        if ok:
            return VerificationOutcome.success("s", "ok")
        return VerificationOutcome.failure("s", "no", FailureReason.INVALID_DATA)

    return VerificationResults(
        file_hash_match=outcome(file_ok),
        local_proof=outcome(local_ok),
        on_chain_anchor=chain or VerificationOutcome.failure(
            StepLabel.ON_CHAIN.value, "missing", FailureReason.MISSING_DATA
        ),
    )


class TestCanRefresh:
    def test_partial_proof_can_refresh(self):
        assert can_refresh(_results()) is True

    def test_no_results(self):
        assert can_refresh(None) is False

    def test_not_offered_for_chain_mismatch(self):
        mismatch = VerificationOutcome.failure(
            StepLabel.ON_CHAIN.value, "header mismatch", FailureReason.INVALID_DATA
        )
        assert can_refresh(_results(chain=mismatch)) is False

    def test_not_offered_for_api_error(self):
        down = VerificationOutcome.failure(StepLabel.ON_CHAIN.value, "down", FailureReason.API_ERROR)
        assert can_refresh(_results(chain=down)) is False

    def test_not_offered_when_fully_verified(self):
        assert can_refresh(_results(chain=ANCHORED)) is False

    @pytest.mark.parametrize("file_ok,local_ok", [(False, True), (True, False)])
    def test_not_offered_when_local_checks_fail(self, file_ok, local_ok):
        assert can_refresh(_results(file_ok, local_ok)) is False

    @pytest.mark.asyncio
    async def test_partial_proof_through_real_anchor(self, content):
        from chiastamp.kernel.anchor import ChainAnchorVerifier

        class NoIndex:
            async def get_coin_records_by_hint(self, hint, include_spent_coins=True):
                raise AssertionError("no query expected for a partial proof")

            async def get_block_record_by_height(self, height):
                raise AssertionError("no query expected for a partial proof")

        partial = partial_artifact(content)
        verifier = ChainAnchorVerifier(NoIndex(), clock=lambda: 0.0)
        results = await run_pipeline(compute_file_digest(content, partial), partial, verifier.verify)
        assert can_refresh(results) is True


class TestProofsDiffer:
    def test_identical(self, artifact):
        assert proofs_differ(artifact, artifact.model_copy()) is False

    def test_salt_is_ignored(self, artifact):
        assert proofs_differ(artifact, artifact.model_copy(update={"salt": None})) is False

    @pytest.mark.parametrize("field,value", [
        ("confirmed", False),
        ("header_hash", None),
        ("coin_id", "ff" * 32),
        ("root_hash", "00" * 32),
        ("leaf_hash", "11" * 32),
    ])
    def test_scalar_fields(self, artifact, field, value):
        assert proofs_differ(artifact, artifact.model_copy(update={field: value})) is True

    def test_partial_to_confirmed(self, content):
        partial = partial_artifact(content)
        confirmed = make_artifact(content)
        assert proofs_differ(partial, confirmed) is True

    def test_step_position_matters(self, artifact):
        steps = list(artifact.proof)
        flipped = Position.LEFT if steps[-1].position == Position.RIGHT else Position.RIGHT
        steps[-1] = ProofStep(hash=steps[-1].hash, position=flipped)
        assert proofs_differ(artifact, artifact.model_copy(update={"proof": steps})) is True

    def test_step_order_matters(self, artifact):
        steps = list(reversed(artifact.proof))
        assert proofs_differ(artifact, artifact.model_copy(update={"proof": steps})) is True

    def test_extra_step(self, artifact):
        steps = list(artifact.proof) + [ProofStep(hash="00" * 32, position=Position.LEFT)]
        assert proofs_differ(artifact, artifact.model_copy(update={"proof": steps})) is True


class TestVerificationSession:
    @pytest.mark.asyncio
    async def test_stores_latest(self, content, artifact):
        session = VerificationSession(AnchorSpy())
        results = await session.run(compute_file_digest(content, artifact), artifact)
        assert results is not None
        assert session.latest is results

    @pytest.mark.asyncio
    async def test_stale_run_is_discarded(self, content, artifact):
        release_first = asyncio.Event()
        first_started = asyncio.Event()
        slow_outcome = VerificationOutcome.success(StepLabel.ON_CHAIN.value, "slow")
        fast_outcome = VerificationOutcome.success(StepLabel.ON_CHAIN.value, "fast")
        calls = 0

        async def anchor(a):
            nonlocal calls
            calls += 1
            if calls == 1:
                first_started.set()
                await release_first.wait()
                return slow_outcome
            return fast_outcome

        session = VerificationSession(anchor)
        digest = compute_file_digest(content, artifact)

        first = asyncio.create_task(session.run(digest, artifact))
        await first_started.wait()
        second = await session.run(digest, artifact)
        release_first.set()
        stale = await first

        assert stale is None
        assert second.on_chain_anchor is fast_outcome
        assert session.latest is second

    @pytest.mark.asyncio
    async def test_reset_invalidates_in_flight_run(self, content, artifact):
        release = asyncio.Event()
        started = asyncio.Event()

        async def anchor(a):
            started.set()
            await release.wait()
            return ANCHORED

        session = VerificationSession(anchor)
        task = asyncio.create_task(session.run(compute_file_digest(content, artifact), artifact))
        await started.wait()
        session.reset()
        release.set()
        assert await task is None
        assert session.latest is None
