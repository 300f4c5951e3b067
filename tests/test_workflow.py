import pytest
from sqlalchemy import text

from faculty_appraisal.core.config import settings
from faculty_appraisal.core.exceptions import (
    AccessDeniedError,
    ActiveCycleRequiredError,
    IncompleteEvaluationError,
    NotActionableError,
)
from faculty_appraisal.models import Appeal, Appraisal, AppraisalStatus, Evaluation, EvaluatorRole, Signature
from faculty_appraisal.schemas.evaluation import (
    Band, CapabilitiesSectionInput, CapabilitiesSelections, PerformanceSectionInput,
)
from faculty_appraisal.services import cache
from faculty_appraisal.services.appraisal_state import WorkflowAction, apply_transition
from faculty_appraisal.services.evaluations import EvaluationService
from faculty_appraisal.services.workflow import AppraisalWorkflowService

PERFORMANCE = PerformanceSectionInput(
    research_band=Band.MEETS,
    university_service_count=3,
    community_service_count=2,
    teaching_eval_avg=85,
)
CAPABILITIES = CapabilitiesSectionInput(
    selections=CapabilitiesSelections(
        institutional_commitment=Band.HIGH,
        professionalism=Band.MEETS,
        achieving_results=Band.EXCEEDS,
    ),
    note="Solid year",
)


def _reload(db_session, appraisal_id):
    db_session.expire_all()
    return db_session.get(Appraisal, appraisal_id)


@pytest.fixture
def invalidated_paths():
    paths = []
    cache.register_hook(paths.append)
    yield paths
    cache.unregister_hook(paths.append)


def test_current_appraisal_is_created_lazily(db_session, people, active_cycle):
    service = AppraisalWorkflowService(db_session)
    first = service.get_or_create_current(people["instructor"])
    second = service.get_or_create_current(people["instructor"])

    assert first.id == second.id
    assert first.status == AppraisalStatus.NEW
    assert first.cycle_id == active_cycle.id
    assert db_session.query(Appraisal).count() == 1


def test_current_appraisal_requires_active_cycle(db_session, people):
    with pytest.raises(ActiveCycleRequiredError):
        AppraisalWorkflowService(db_session).get_or_create_current(people["instructor"])


def test_full_review_cycle(db_session, people, make_appraisal, invalidated_paths):
    appraisal = make_appraisal(people["instructor"])
    evaluations = EvaluationService(db_session)
    workflow = AppraisalWorkflowService(db_session)

    # First save promotes the appraisal into review
    evaluations.save_performance(appraisal.id, people["hod"], PERFORMANCE)
    assert _reload(db_session, appraisal.id).status == AppraisalStatus.SENT

    evaluation = evaluations.save_capabilities(appraisal.id, people["hod"], CAPABILITIES)
    assert evaluation.performance_pts == 62
    assert evaluation.capabilities_pts == 48
    assert evaluation.rubric["capabilities"]["total"] == 48
    assert evaluation.rubric["capabilities"]["overall_band"] == "EXCEEDS"

    current = _reload(db_session, appraisal.id)
    assert current.total_score == 110
    assert current.research_score == 18
    assert current.teaching_quality_score == 24

    sent = workflow.send(appraisal.id, people["hod"])
    assert sent.status == AppraisalStatus.SENT
    assert db_session.query(Signature).count() == 0
    assert f"/hod/reviews/{appraisal.id}" in invalidated_paths

    approved = workflow.approve(appraisal.id, people["instructor"])
    assert approved.status == AppraisalStatus.COMPLETE
    signatures = db_session.query(Signature).filter(Signature.appraisal_id == appraisal.id).all()
    assert len(signatures) == 1
    assert signatures[0].note == "Approved"
    assert signatures[0].signer_id == people["instructor"].id


def test_capabilities_save_keeps_other_rubric_keys(db_session, people, make_appraisal):
    appraisal = make_appraisal(people["instructor"])
    db_session.add(Evaluation(appraisal_id=appraisal.id, role=EvaluatorRole.HOD, rubric={"comments": "keep me"}))
    db_session.commit()

    evaluation = EvaluationService(db_session).save_capabilities(appraisal.id, people["hod"], CAPABILITIES)
    assert evaluation.rubric["comments"] == "keep me"
    assert evaluation.rubric["capabilities"]["total"] == 48


def test_dean_reviews_hod(db_session, people, make_appraisal, invalidated_paths):
    appraisal = make_appraisal(people["hod"], status=AppraisalStatus.SENT, evaluator_role=EvaluatorRole.DEAN)
    sent = AppraisalWorkflowService(db_session).send(appraisal.id, people["dean"])
    assert sent.status == AppraisalStatus.SENT
    assert invalidated_paths == [f"/dean/reviews/{appraisal.id}"]


def test_recalculate_without_evaluation_is_noop(db_session, people, make_appraisal):
    appraisal = make_appraisal(people["instructor"])
    assert AppraisalWorkflowService(db_session).recalculate_total(appraisal.id, EvaluatorRole.HOD) is None
    assert _reload(db_session, appraisal.id).status == AppraisalStatus.NEW


@pytest.mark.parametrize("missing", ["performance_pts", "capabilities_pts"])
def test_send_requires_both_sections(db_session, people, make_appraisal, missing):
    appraisal = make_appraisal(people["instructor"], status=AppraisalStatus.SENT, evaluator_role=EvaluatorRole.HOD)
    evaluation = db_session.query(Evaluation).filter(Evaluation.appraisal_id == appraisal.id).one()
    setattr(evaluation, missing, None)
    db_session.commit()

    with pytest.raises(IncompleteEvaluationError):
        AppraisalWorkflowService(db_session).send(appraisal.id, people["hod"])


def test_send_without_evaluation(db_session, people, make_appraisal):
    appraisal = make_appraisal(people["instructor"])
    with pytest.raises(IncompleteEvaluationError):
        AppraisalWorkflowService(db_session).send(appraisal.id, people["hod"])
    assert _reload(db_session, appraisal.id).status == AppraisalStatus.NEW


def test_send_by_unrelated_evaluator(db_session, people, make_appraisal):
    appraisal = make_appraisal(people["instructor"], status=AppraisalStatus.SENT, evaluator_role=EvaluatorRole.HOD)
    with pytest.raises(AccessDeniedError):
        AppraisalWorkflowService(db_session).send(appraisal.id, people["hod_physics"])


def test_send_complete_appraisal_is_not_actionable(db_session, people, make_appraisal):
    appraisal = make_appraisal(people["instructor"], status=AppraisalStatus.COMPLETE, evaluator_role=EvaluatorRole.HOD)
    with pytest.raises(NotActionableError):
        AppraisalWorkflowService(db_session).send(appraisal.id, people["hod"])
    assert _reload(db_session, appraisal.id).status == AppraisalStatus.COMPLETE


def test_complete_appraisal_cannot_be_rescored(db_session, people, make_appraisal):
    appraisal = make_appraisal(people["instructor"], status=AppraisalStatus.COMPLETE, evaluator_role=EvaluatorRole.HOD)
    with pytest.raises(NotActionableError):
        EvaluationService(db_session).save_performance(appraisal.id, people["hod"], PERFORMANCE)


@pytest.mark.parametrize("status", [AppraisalStatus.NEW, AppraisalStatus.RETURNED, AppraisalStatus.COMPLETE])
def test_approve_requires_sent(db_session, people, make_appraisal, status):
    appraisal = make_appraisal(people["instructor"], status=status)
    with pytest.raises(NotActionableError):
        AppraisalWorkflowService(db_session).approve(appraisal.id, people["instructor"])
    assert _reload(db_session, appraisal.id).status == status
    assert db_session.query(Signature).count() == 0


def test_only_owner_can_approve(db_session, people, make_appraisal):
    appraisal = make_appraisal(people["instructor"], status=AppraisalStatus.SENT)
    with pytest.raises(AccessDeniedError):
        AppraisalWorkflowService(db_session).approve(appraisal.id, people["hod"])


def test_signature_failure_does_not_undo_approval(db_session, people, make_appraisal, monkeypatch):
    appraisal = make_appraisal(people["instructor"], status=AppraisalStatus.SENT)

    def broken_signature(**kwargs):
        raise RuntimeError("signature store unavailable")

    monkeypatch.setattr("faculty_appraisal.services.signatures.Signature", broken_signature)

    approved = AppraisalWorkflowService(db_session).approve(appraisal.id, people["instructor"])
    assert approved.status == AppraisalStatus.COMPLETE
    assert _reload(db_session, appraisal.id).status == AppraisalStatus.COMPLETE
    assert db_session.query(Signature).count() == 0


def test_appeal_returns_appraisal(db_session, people, make_appraisal):
    appraisal = make_appraisal(people["instructor"], status=AppraisalStatus.SENT)
    returned, appeal = AppraisalWorkflowService(db_session).raise_appeal(people["instructor"], "I disagree")

    assert returned.id == appraisal.id
    assert returned.status == AppraisalStatus.RETURNED
    assert appeal.message == "I disagree"
    assert appeal.by_user_id == people["instructor"].id
    assert db_session.query(Appeal).filter(Appeal.appraisal_id == appraisal.id).count() == 1


def test_appeal_message_defaults_to_empty(db_session, people, make_appraisal):
    make_appraisal(people["instructor"], status=AppraisalStatus.SENT)
    _, appeal = AppraisalWorkflowService(db_session).raise_appeal(people["instructor"])
    assert appeal.message == ""


@pytest.mark.parametrize("status", [AppraisalStatus.NEW, AppraisalStatus.RETURNED, AppraisalStatus.COMPLETE])
def test_appeal_requires_sent(db_session, people, make_appraisal, status):
    appraisal = make_appraisal(people["instructor"], status=status)
    with pytest.raises(NotActionableError):
        AppraisalWorkflowService(db_session).raise_appeal(people["instructor"], "no")
    assert _reload(db_session, appraisal.id).status == status
    assert db_session.query(Appeal).count() == 0


def test_appeal_without_appraisal(db_session, people, active_cycle):
    with pytest.raises(NotActionableError):
        AppraisalWorkflowService(db_session).raise_appeal(people["instructor"], "no")


def test_appeal_is_atomic(db_session, people, make_appraisal, monkeypatch):
    appraisal = make_appraisal(people["instructor"], status=AppraisalStatus.SENT)

    def failing_insert(self, appraisal, acting_user, message):
        raise RuntimeError("insert failed")

    monkeypatch.setattr(AppraisalWorkflowService, "_create_appeal", failing_insert)

    with pytest.raises(RuntimeError):
        AppraisalWorkflowService(db_session).raise_appeal(people["instructor"], "I disagree")

    assert _reload(db_session, appraisal.id).status == AppraisalStatus.SENT
    assert db_session.query(Appeal).count() == 0


def test_resend_after_appeal(db_session, people, make_appraisal):
    appraisal = make_appraisal(people["instructor"], status=AppraisalStatus.SENT, evaluator_role=EvaluatorRole.HOD)
    workflow = AppraisalWorkflowService(db_session)
    workflow.raise_appeal(people["instructor"], "Please recheck research")
    assert _reload(db_session, appraisal.id).status == AppraisalStatus.RETURNED

    assert workflow.send(appraisal.id, people["hod"]).status == AppraisalStatus.SENT
    assert workflow.approve(appraisal.id, people["instructor"]).status == AppraisalStatus.COMPLETE


def test_appeal_limit(db_session, people, make_appraisal, monkeypatch):
    appraisal = make_appraisal(people["instructor"], status=AppraisalStatus.SENT, evaluator_role=EvaluatorRole.HOD)
    monkeypatch.setattr(settings, "max_appeals_per_appraisal", 1)
    workflow = AppraisalWorkflowService(db_session)

    workflow.raise_appeal(people["instructor"], "first")
    workflow.send(appraisal.id, people["hod"])
    with pytest.raises(NotActionableError):
        workflow.raise_appeal(people["instructor"], "second")
    assert _reload(db_session, appraisal.id).status == AppraisalStatus.SENT


def test_stale_transition_is_rejected(db_session, people, make_appraisal):
    appraisal = make_appraisal(people["instructor"], status=AppraisalStatus.SENT)
    assert appraisal.status == AppraisalStatus.SENT

    # Another writer completes the appraisal behind this session's back
    db_session.execute(text("UPDATE appraisals SET status = 'complete' WHERE id = :id"), {"id": appraisal.id})

    with pytest.raises(NotActionableError):
        apply_transition(db_session, appraisal, WorkflowAction.APPROVE)
    db_session.rollback()


def test_cache_hook_failure_is_swallowed(db_session, people, make_appraisal):
    appraisal = make_appraisal(people["instructor"], status=AppraisalStatus.SENT, evaluator_role=EvaluatorRole.HOD)

    def broken_hook(path):
        raise ConnectionError("revalidate endpoint down")

    cache.register_hook(broken_hook)
    try:
        assert AppraisalWorkflowService(db_session).send(appraisal.id, people["hod"]).status == AppraisalStatus.SENT
    finally:
        cache.unregister_hook(broken_hook)


def test_save_racing_with_approval_leaves_scores_untouched(db_session, people, make_appraisal, monkeypatch):
    appraisal = make_appraisal(people["instructor"], status=AppraisalStatus.SENT, evaluator_role=EvaluatorRole.HOD)
    locked_read = EvaluationService._editable_appraisal

    def completed_after_check(self, appraisal_id):
        checked = locked_read(self, appraisal_id)
        # The faculty member signs off between the status check and the score write
        db_session.execute(text("UPDATE appraisals SET status = 'complete' WHERE id = :id"), {"id": appraisal_id})
        return checked

    monkeypatch.setattr(EvaluationService, "_editable_appraisal", completed_after_check)
    raised = PerformanceSectionInput(
        research_band=Band.HIGH, university_service_count=3, community_service_count=2, teaching_eval_avg=85,
    )
    with pytest.raises(NotActionableError):
        EvaluationService(db_session).save_performance(appraisal.id, people["hod"], raised)

    current = _reload(db_session, appraisal.id)
    evaluation = db_session.query(Evaluation).filter(Evaluation.appraisal_id == appraisal.id).one()
    assert evaluation.research_pts == 18
    assert current.total_score is None


def test_stale_totals_do_not_rescore_completed_appraisal(db_session, people, make_appraisal):
    appraisal = make_appraisal(people["instructor"], status=AppraisalStatus.SENT, evaluator_role=EvaluatorRole.HOD)
    evaluation = db_session.query(Evaluation).filter(Evaluation.appraisal_id == appraisal.id).one()

    db_session.execute(text("UPDATE appraisals SET status = 'complete' WHERE id = :id"), {"id": appraisal.id})

    with pytest.raises(NotActionableError):
        AppraisalWorkflowService(db_session).apply_totals(appraisal, evaluation)
    db_session.rollback()


def test_recalculate_keeps_sent_status(db_session, people, make_appraisal):
    appraisal = make_appraisal(people["instructor"], status=AppraisalStatus.SENT, evaluator_role=EvaluatorRole.HOD)
    total = AppraisalWorkflowService(db_session).recalculate_total(appraisal.id, EvaluatorRole.HOD)

    current = _reload(db_session, appraisal.id)
    assert total == 110
    assert current.total_score == 110
    assert current.research_score == 18
    assert current.status == AppraisalStatus.SENT
