import asyncio
import json

import pytest

from conftest import LOCAL_PLAYER_ID, participant, submission_payload
from wordsmoke.core.errors import APIError, ValidationFailure
from wordsmoke.schemas.report_schemas import ReportablePhrase


def scored_game(**overrides):
    overrides.setdefault("participants", [
        participant(LOCAL_PLAYER_ID, "Local", role="host", score=10),
        participant("player-a", "alex", score=7),
        participant("player-b", "Blair", score=7),
        participant("player-c", "Casey", score=3),
    ])
    return overrides


class TestReportRounds:
    def test_union_of_completed_and_current(self, make_model, make_round):
        model = make_model()
        model.completed_rounds = [make_round(round_id="r2", number=2, status="closed"), make_round(round_id="r1", number=1, status="closed")]
        model.round = make_round(round_id="r3", number=3)

        assert [r.id for r in model.reports.report_rounds()] == ["r1", "r2", "r3"]

    def test_current_round_duplicate_is_dropped(self, make_model, make_round):
        model = make_model()
        model.completed_rounds = [make_round(round_id="r1", number=1, status="closed")]
        model.round = make_round(round_id="r1", number=1)

        assert len(model.reports.report_rounds()) == 1


class TestPlayerOrdering:
    def test_participants_sorted_viewer_last(self, make_model):
        model = make_model(**scored_game())

        ids = model.reports.ordered_player_ids_for_report([])

        assert ids == ["player-a", "player-b", "player-c", LOCAL_PLAYER_ID]

    def test_falls_back_to_submissions(self, make_model, make_round):
        model = make_model(participants=[])
        rounds = [make_round(submissions=[
            submission_payload("s1", "player-z", player_name="Zed"),
            submission_payload("s2", LOCAL_PLAYER_ID, player_name="Me"),
            submission_payload("s3", "player-y", player_name="ada"),
        ])]

        assert model.reports.ordered_player_ids_for_report(rounds) == ["player-y", "player-z", LOCAL_PLAYER_ID]

    def test_unknown_viewer_is_not_appended(self, make_model, make_round):
        model = make_model(participants=None)
        rounds = [make_round(submissions=[submission_payload("s1", "player-z", player_name="Zed")])]

        assert model.reports.ordered_player_ids_for_report(rounds) == ["player-z"]


class TestWinningRound:
    def test_uses_winning_round_number(self, make_model, make_round):
        model = make_model(winning_round_number=1)
        model.completed_rounds = [make_round(round_id="r1", number=1, status="closed"), make_round(round_id="r2", number=2, status="closed")]

        assert model.reports.winning_round().id == "r1"

    def test_missing_winning_round_falls_back_to_current(self, make_model, make_round):
        model = make_model(winning_round_number=4)
        model.round = make_round(round_id="r4", number=4)

        assert model.reports.winning_round().id == "r4"

    def test_defaults_to_last_completed(self, make_model, make_round):
        model = make_model()
        model.completed_rounds = [make_round(round_id="r1", number=1, status="closed"), make_round(round_id="r2", number=2, status="closed")]
        model.round = make_round(round_id="r3", number=3)

        assert model.reports.winning_round().id == "r2"

    def test_nothing_available(self, make_model):
        assert make_model().reports.winning_round() is None


def test_goal_word_skips_empty_goals(make_model, make_round):
    model = make_model()
    model.completed_rounds = [
        make_round(round_id="r1", number=1, status="closed", submissions=[
            submission_payload("s1", "player-a", feedback={"goal": ""}),
            submission_payload("s1b", "player-b", feedback={"goal": "   "}),
        ]),
        make_round(round_id="r2", number=2, status="closed", submissions=[
            submission_payload("s2", "player-a", feedback={"goal": "smoke"}),
        ]),
    ]

    assert model.reports.goal_word() == "smoke"


def test_goal_word_absent(make_model):
    assert make_model().reports.goal_word() is None


class TestWinnerIds:
    def test_ties_all_win(self, make_model, make_round):
        model = make_model(**scored_game())
        round_payload = make_round(submissions=[
            submission_payload("s1", "player-a", correct_guess=True),
            submission_payload("s2", "player-b", correct_guess=True),
            submission_payload("s3", "player-c", correct_guess=True),
        ])

        assert model.reports.winner_ids(round_payload) == ["player-a", "player-b"]

    def test_strictly_higher_score_wins_alone(self, make_model, make_round):
        model = make_model(**scored_game())
        round_payload = make_round(submissions=[
            submission_payload("s1", LOCAL_PLAYER_ID, correct_guess=True),
            submission_payload("s2", "player-a", correct_guess=True),
            submission_payload("s3", "player-b", correct_guess=False),
        ])

        assert model.reports.winner_ids(round_payload) == [LOCAL_PLAYER_ID]

    def test_no_correct_guesses(self, make_model, make_round):
        model = make_model(**scored_game())
        round_payload = make_round(submissions=[submission_payload("s1", "player-a", correct_guess=None)])

        assert model.reports.winner_ids(round_payload) == []


class TestReportablePhrases:
    def test_filters_dedupes_and_sorts(self, make_model, make_round):
        model = make_model(**scored_game())
        model.completed_rounds = [
            make_round(round_id="r1", number=1, status="closed", submissions=[
                submission_payload("s1", "player-b", phrase="first"),
                submission_payload("s2", "player-a", phrase="  second  "),
                submission_payload("s3", LOCAL_PLAYER_ID, phrase="mine"),
                submission_payload("s4", "player-c", phrase="   "),
            ]),
        ]
        model.round = make_round(round_id="r2", number=2, submissions=[
            submission_payload("s5", "player-c", phrase="third"),
            submission_payload("s1", "player-b", phrase="duplicate"),
        ])

        phrases = model.reports.reportable_phrases()

        assert [(p.round_number, p.player_name, p.phrase) for p in phrases] == [
            (2, "Casey", "third"),
            (1, "alex", "second"),
            (1, "Blair", "first"),
        ]


class TestUserReports:
    def test_problem_message(self, make_model, make_round):
        model = make_model()
        model.round = make_round(round_id="r7", number=7)

        message = model.reports.problem_with_game_report_message("  It froze.  ", " Pat ", "")

        assert message == "\n".join([
            "game_id: game-1",
            "round_id: r7",
            f"player_id: {LOCAL_PLAYER_ID}",
            "player_name: Local",
            "provided_name: Pat",
            "",
            "It froze.",
        ])

    def test_problem_message_without_round_or_name(self, make_model):
        model = make_model(participants=[])

        message = model.reports.problem_with_game_report_message("Broken")

        assert "round_id: none" in message
        assert "player_name: Unknown" in message
        assert "provided_" not in message

    def test_blank_problem_is_rejected(self, stub, make_model):
        model = make_model()

        with pytest.raises(ValidationFailure) as excinfo:
            asyncio.run(model.reports.submit_problem_with_game_report("   "))

        assert str(excinfo.value) == "Please describe the problem."
        assert stub.requests == []

    def test_problem_report_is_posted(self, stub, make_model):
        stub.add("support.local/submit", {"success": True})
        model = make_model()

        asyncio.run(model.reports.submit_problem_with_game_report("It froze.", email="pat@example.com"))

        body = json.loads(stub.requests[0].content)
        assert body["access_key"] == "test-key"
        assert body["subject"] == "Problem with game game-1"
        assert "provided_email: pat@example.com" in body["message"]

    def test_inappropriate_content_message(self, make_model):
        phrase = ReportablePhrase(id="s5", round_number=2, player_id="player-c", player_name="Casey", phrase="rude words")

        message = make_model().reports.inappropriate_content_report_message([phrase])

        assert "round 2 - Casey (player-c) [s5]: rude words" in message.splitlines()

    def test_empty_selection_is_rejected(self, stub, make_model):
        with pytest.raises(ValidationFailure) as excinfo:
            asyncio.run(make_model().reports.submit_inappropriate_content_report([]))

        assert str(excinfo.value) == "Select at least one phrase to report."
        assert stub.requests == []

    def test_rejected_delivery_raises(self, stub, make_model):
        stub.add("support.local/submit", {"success": False, "message": "Invalid access key"})
        phrase = ReportablePhrase(id="s5", round_number=2, player_id="player-c", player_name="Casey", phrase="rude")

        with pytest.raises(APIError) as excinfo:
            asyncio.run(make_model().reports.submit_inappropriate_content_report([phrase]))

        assert str(excinfo.value) == "Invalid access key"
