"""In-memory session walks: submit, back, answer bucketing and broken flows."""

import pytest

from assessment_flow.models.assessment import EndDestination, StepDestination
from assessment_flow.session import AssessmentSession, flatten_answers
from assessment_flow.store import parse_assessment
from helpers.builders import end, field, goto, make_assessment, make_document, rule

WELCOME = {"full_name": "Ada Lovelace", "consent": True}


# =====================================================================
# flatten_answers
# =====================================================================


class TestFlattenAnswers:

    def test_merges_buckets(self):
        flat = flatten_answers({"a": {"x": 1}, "b": {"y": 2}})
        assert flat == {"x": 1, "y": 2}

    def test_first_writer_wins(self):
        flat = flatten_answers({"a": {"x": 1}, "b": {"x": 2}})
        assert flat == {"x": 1}

    def test_order_decides_the_writer(self):
        flat = flatten_answers({"a": {"x": 1}, "b": {"x": 2}}, order=["b", "a"])
        assert flat == {"x": 2}

    def test_unordered_buckets_come_last(self):
        flat = flatten_answers({"extra": {"x": 0, "z": 3}, "a": {"x": 1}}, order=["a"])
        assert flat == {"x": 1, "z": 3}

    def test_order_may_name_missing_buckets(self):
        assert flatten_answers({"a": {"x": 1}}, order=["ghost", "a"]) == {"x": 1}


# =====================================================================
# Walking the bundled assessments
# =====================================================================


class TestPetSurveyWalk:

    def test_dog_owner_path(self, pet_survey):
        session = AssessmentSession(pet_survey)
        assert session.current_step_id == "intro"

        dest = session.submit({"hasPet": True, "species": "dog"})
        assert dest == StepDestination(id="dogs")
        session.submit({"dogAge": 9})
        session.submit({"comments": "Lovely survey"})

        assert session.is_complete
        assert session.current_step is None
        assert session.history == ["intro", "dogs", "feedback"]

    def test_cat_owner_skips_dogs(self, pet_survey):
        session = AssessmentSession(pet_survey)
        assert session.submit({"hasPet": True, "species": "cat"}) == StepDestination(id="feedback")

    def test_no_pet_ends_immediately(self, pet_survey):
        session = AssessmentSession(pet_survey)
        assert session.submit({"hasPet": False}) == EndDestination()
        assert session.is_complete

    def test_visible_fields_follow_answers(self, pet_survey):
        session = AssessmentSession(pet_survey)
        assert session.visible_fields() == ["hasPet"]
        session.submit({"hasPet": True, "species": "dog"})
        assert session.visible_fields() == ["dogAge"]

    def test_visible_fields_after_completion(self, pet_survey):
        session = AssessmentSession(pet_survey)
        session.submit({"hasPet": False})
        assert session.visible_fields() == []

    def test_hidden_required_field_not_enforced(self, pet_survey):
        """species is required but hidden until hasPet is ticked."""
        session = AssessmentSession(pet_survey)
        session.submit({})
        assert session.is_complete


class TestHealthIntakeWalk:

    def test_minor_detours_through_guardian(self, health_intake):
        session = AssessmentSession(health_intake)
        session.submit(WELCOME)
        assert session.submit({"age": 12}) == StepDestination(id="guardian")
        assert session.submit({"guardian_name": "Parent"}) == StepDestination(id="smoking")
        assert session.submit({"smokes": "no"}) == StepDestination(id="pets")
        assert session.submit({}) == StepDestination(id="summary")
        assert session.submit({}) == EndDestination()
        assert session.history == ["welcome", "basics", "guardian", "smoking", "pets", "summary"]

    def test_answers_use_step_key(self, health_intake):
        session = AssessmentSession(health_intake)
        session.submit(WELCOME)
        session.submit({"age": 40})
        session.submit({"smokes": "yes"})
        session.submit({"cigarettes_per_day": 5})
        assert session.answers["smoking_detail"] == {"cigarettes_per_day": 5}
        assert "smoking-detail" not in session.answers

    def test_cross_step_visibility(self, health_intake):
        """smoking-detail fields depend on the answer given on the smoking step."""
        session = AssessmentSession(health_intake)
        session.submit(WELCOME)
        session.submit({"age": 40})
        session.submit({"smokes": "former"})
        assert session.current_step_id == "smoking-detail"
        assert session.visible_fields() == ["quit_year"]

    def test_flat_answers(self, health_intake):
        session = AssessmentSession(health_intake)
        session.submit(WELCOME)
        session.submit({"age": 40, "height_cm": 170})
        assert session.flat_answers() == {**WELCOME, "age": 40, "height_cm": 170}

    def test_answers_for_returns_copy(self, health_intake):
        session = AssessmentSession(health_intake)
        session.submit(WELCOME)
        welcome = health_intake.get_step("welcome")
        copy = session.answers_for(welcome)
        copy["full_name"] = "changed"
        assert session.answers_for(welcome)["full_name"] == "Ada Lovelace"


# =====================================================================
# Validation
# =====================================================================


class TestSubmitValidation:

    def test_missing_required_field_raises(self, health_intake):
        session = AssessmentSession(health_intake)
        with pytest.raises(ValueError, match="Invalid answers for step welcome"):
            session.submit({"full_name": "Ada"})

    def test_failed_submit_changes_nothing(self, health_intake):
        session = AssessmentSession(health_intake)
        with pytest.raises(ValueError):
            session.submit({"consent": False})
        assert session.current_step_id == "welcome"
        assert session.answers == {}
        assert session.history == []

    def test_multi_choice_checkbox(self, health_intake):
        session = AssessmentSession(health_intake)
        session.submit(WELCOME)
        session.submit({"age": 40})
        session.submit({"smokes": "no"})
        with pytest.raises(ValueError, match="pet_kinds"):
            session.submit({"has_pet": True, "pet_kinds": []})
        session.submit({"has_pet": True, "pet_kinds": ["cat"]})
        assert session.current_step_id == "summary"

    def test_submit_after_completion(self, pet_survey):
        session = AssessmentSession(pet_survey)
        session.submit({"hasPet": False})
        with pytest.raises(ValueError, match="already complete"):
            session.submit({})

    def test_resubmit_replaces_bucket(self, pet_survey):
        session = AssessmentSession(pet_survey)
        session.submit({"hasPet": True, "species": "dog"})
        session.back()
        session.submit({"hasPet": True, "species": "cat"})
        assert session.answers["intro"] == {"hasPet": True, "species": "cat"}
        assert session.current_step_id == "feedback"

    def test_first_answered_step_wins_on_detour(self):
        """A rule jumps ahead; the step answered first keeps the shared field."""
        assessment = make_assessment(
            [["s1", "s2", "s3"]],
            {
                "s1": {"traversal": [rule({}, goto("s3"))]},
                "s2": {
                    "fields": [field("x")],
                    "traversal": [rule({"all": [{"eq": ["x", "from-s3"]}]}, end())],
                    "fallbackNext": goto("s1"),
                },
                "s3": {"fields": [field("x")], "fallbackNext": goto("s2")},
            },
        )
        session = AssessmentSession(assessment)
        session.submit({})
        session.submit({"x": "from-s3"})
        assert session.current_step_id == "s2"
        session.submit({"x": "from-s2"})

        assert session.is_complete
        assert list(session.answers) == ["s1", "s3", "s2"]
        assert session.flat_answers()["x"] == "from-s3"


# =====================================================================
# back()
# =====================================================================


class TestBack:

    def test_back_follows_history(self, health_intake):
        """Back from guardian returns to basics, not to its natural predecessor."""
        session = AssessmentSession(health_intake)
        session.submit(WELCOME)
        session.submit({"age": 12})
        assert session.current_step_id == "guardian"
        assert session.back().id == "basics"
        assert session.back().id == "welcome"

    def test_back_at_first_step(self, pet_survey):
        session = AssessmentSession(pet_survey)
        with pytest.raises(ValueError, match="already at the first step"):
            session.back()

    def test_back_without_history_uses_natural_order(self, pet_survey):
        session = AssessmentSession(pet_survey)
        session.current_step_id = "feedback"
        assert session.back().id == "dogs"

    def test_back_from_completed_session(self, pet_survey):
        session = AssessmentSession(pet_survey)
        session.submit({"hasPet": False})
        assert session.back().id == "intro"
        assert not session.is_complete

    def test_back_keeps_answers(self, pet_survey):
        session = AssessmentSession(pet_survey)
        session.submit({"hasPet": True, "species": "dog"})
        session.back()
        assert session.answers["intro"] == {"hasPet": True, "species": "dog"}


# =====================================================================
# Broken flows
# =====================================================================


class TestBrokenFlows:

    def test_no_steps(self):
        with pytest.raises(ValueError, match="has no steps"):
            AssessmentSession(make_assessment([]))

    def test_entry_missing_from_table(self):
        doc = make_document([["ghost", "a"]])
        del doc["steps"]["ghost"]
        with pytest.raises(ValueError, match="Step not found: ghost"):
            AssessmentSession(parse_assessment(doc))

    def test_dangling_destination_halts(self):
        assessment = make_assessment([["a", "b"]], {"a": {"fallbackNext": goto("ghost")}})
        session = AssessmentSession(assessment)
        with pytest.raises(ValueError, match="Step not found: ghost"):
            session.submit({})
        assert session.current_step_id == "a"
        assert session.history == []

    def test_unplaced_step_halts(self):
        assessment = make_assessment(
            [["a", "b"]],
            {"a": {"traversal": [rule({}, goto("orphan"))]}, "orphan": {}},
        )
        session = AssessmentSession(assessment)
        session.submit({})
        assert session.current_step_id == "orphan"
        with pytest.raises(ValueError, match="not placed in any group"):
            session.submit({})

    def test_group_destination_enters_first_step(self):
        assessment = make_assessment(
            [["a", "b"], ["c", "d"]],
            {"a": {"fallbackNext": {"type": "group", "id": "g2"}}},
        )
        session = AssessmentSession(assessment)
        session.submit({})
        assert session.current_step_id == "c"

    @pytest.mark.parametrize("group_id", ["g2", "nope", None])
    def test_unusable_group_destination(self, group_id):
        assessment = make_assessment(
            [["a"], []],
            {"a": {"fallbackNext": {"type": "group", "id": group_id}}},
        )
        session = AssessmentSession(assessment)
        with pytest.raises(ValueError, match="Group not found or empty"):
            session.submit({})

    def test_end_rule_completes(self):
        assessment = make_assessment([["a", "b"]], {"a": {"traversal": [rule({}, end())]}})
        session = AssessmentSession(assessment)
        session.submit({})
        assert session.is_complete
