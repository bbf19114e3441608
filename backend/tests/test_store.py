import random

from voicequiz.scoring import Totals


def test_new_player_starts_empty(store):
	totals = store.record_start("p1", "addition")
	assert totals == Totals()
	assert totals.accuracy == 50


def test_round_counted_once(store):
	store.begin_round("p1", "addition", "What is 1 plus 1?", 2, "/audio/output/a.mp3")
	store.record_answer("p1", "addition", True)
	totals = store.record_answer("p1", "addition", True)
	assert totals.total_games_played == 1
	assert totals.correct_answers == 1


def test_counted_cookie_blocks_scoring(store):
	store.begin_round("p1", "addition", "What is 1 plus 1?", 2, "/audio/output/a.mp3")
	totals = store.record_answer("p1", "addition", True, already_counted=True)
	assert totals.total_games_played == 0
	assert totals.correct_answers == 0


def test_correct_never_exceeds_played(store):
	rng = random.Random(1234)
	for _ in range(60):
		if rng.random() < 0.4:
			store.begin_round("p1", "spelling", "Spell the word cat.", "cat", "/audio/output/q.mp3")
		totals = store.record_answer(
			"p1", "spelling", rng.random() < 0.7, already_counted=rng.random() < 0.2
		)
		assert totals.correct_answers <= totals.total_games_played


def test_begin_round_resets_counted_flag(store):
	store.begin_round("p1", "addition", "What is 1 plus 1?", 2, "/audio/output/a.mp3")
	store.record_answer("p1", "addition", False)
	state = store.begin_round("p1", "addition", "What is 2 plus 2?", 4, "/audio/output/b.mp3")
	assert state.round_counted is False
	assert state.current_answer == "4"
	totals = store.record_answer("p1", "addition", True, feedback_audio="/audio/util/correct.mp3")
	assert (totals.total_games_played, totals.correct_answers) == (2, 1)
	assert store.current_round("p1").last_feedback_audio == "/audio/util/correct.mp3"


def test_legacy_totals_only_seed_unknown_pairs(store):
	imported = store.record_start("p1", "vocabulary", Totals(total_games_played=4, correct_answers=3))
	assert imported.accuracy == 75
	ignored = store.record_start("p1", "vocabulary", Totals(total_games_played=10, correct_answers=0))
	assert ignored.total_games_played == 4


def test_players_are_isolated(store):
	store.begin_round("p1", "addition", "q", 2, "/audio/output/a.mp3")
	store.record_answer("p1", "addition", True)
	assert store.totals("p2", "addition") == Totals()
	assert store.current_round("p2") is None


def test_end_session_persists_by_default(store):
	store.begin_round("p1", "addition", "q", 2, "/audio/output/a.mp3")
	store.record_answer("p1", "addition", True)
	final = store.end_session("p1", "addition")
	assert final.total_games_played == 1
	assert store.totals("p1", "addition").total_games_played == 1
	assert store.current_round("p1") is None


def test_end_session_reset_and_aggregate(store):
	for mode, correct in (("addition", True), ("spelling", False)):
		store.begin_round("p1", mode, "q", "a", f"/audio/output/{mode}.mp3")
		store.record_answer("p1", mode, correct)
	final = store.end_session("p1", reset=True)
	assert (final.total_games_played, final.correct_answers) == (2, 1)
	assert store.totals("p1", "addition") == Totals()
	assert store.totals("p1", "spelling") == Totals()


def test_referenced_audio_covers_all_players(store):
	store.begin_round("p1", "addition", "q", 2, "/audio/output/a.mp3")
	store.begin_round("p2", "addition", "q", 2, "/audio/output/b.mp3")
	store.record_answer("p2", "addition", False, feedback_audio="/audio/util/incorrect.mp3")
	assert store.referenced_audio() == {
		"/audio/output/a.mp3",
		"/audio/output/b.mp3",
		"/audio/util/incorrect.mp3",
	}
