"""Tests for the analysis coach, daily quote and push notifications."""

from datetime import date, datetime

import pytest

from study_command_center.analysis.coach import Coach, session_card, stats
from study_command_center.analysis.quotes import GITA_VERSES, MOTIVATIONAL_QUOTES, daily_quote, verse_index
from study_command_center.focus.session import SESSION_COLLECTION
from study_command_center.generation.client import CONNECTION_FAILED
from study_command_center.models.profile import UserProfile
from study_command_center.models.session import Session
from study_command_center.notifications.push import DEFAULT_ICON, notification_from_push

USER = "aspirant1"


def add_session(store, task: str, day: int, video_id: str | None = None) -> str:
    session = Session(
        task=task,
        duration=30,
        timestamp=datetime(2026, 1, day),
        type="Revision" if video_id else "Deep Work",
        video_id=video_id,
        video_url=f"https://youtu.be/{video_id}" if video_id else None,
    )
    return store.add(USER, SESSION_COLLECTION, session.model_dump(mode="json", exclude={"id"}))


class TestCoach:
    async def test_analysis_context(self, store, fake_generator):
        generator = fake_generator("Work harder.")
        coach = Coach(store, generator, target_hours=7)
        profile = UserProfile(user_id=USER, discipline_score=72, weak_subjects=["Quant"])
        assert await coach.run_deep_analysis(profile) == "Work harder."
        prompt, system = generator.calls[0]
        assert prompt == "Analyze my performance."
        assert '"currentDiscipline": 72' in system
        assert '"targetHours": 7' in system
        assert '"weakAreas": ["Quant"]' in system

    async def test_fallback_text_returned_verbatim(self, store, fake_generator):
        coach = Coach(store, fake_generator(CONNECTION_FAILED))
        assert await coach.run_deep_analysis(UserProfile(user_id=USER)) == CONNECTION_FAILED

    def test_recent_sessions_newest_first_and_limited(self, store, fake_generator):
        for day in range(1, 13):
            add_session(store, f"Task {day}", day)
        recent = Coach(store, fake_generator(""), recent_limit=10).recent_sessions(USER)
        assert len(recent) == 10
        assert recent[0].task == "Task 12"
        assert recent[-1].task == "Task 3"

    def test_delete_session(self, store, fake_generator):
        session_id = add_session(store, "Old", 1)
        coach = Coach(store, fake_generator(""))
        assert coach.delete_session(USER, session_id) is True
        assert coach.recent_sessions(USER) == []

    def test_rewatch_video_session(self, store, fake_generator):
        session_id = add_session(store, "Lecture", 2, video_id="dQw4w9WgXcQ")
        video = Coach(store, fake_generator("")).rewatch(USER, session_id)
        assert video.id == "dQw4w9WgXcQ"
        assert video.url == "https://youtu.be/dQw4w9WgXcQ"
        assert video.title == "Lecture"

    def test_rewatch_without_video(self, store, fake_generator):
        session_id = add_session(store, "Reading", 2)
        assert Coach(store, fake_generator("")).rewatch(USER, session_id) is None

    def test_stats_and_card(self):
        profile = UserProfile(user_id=USER, discipline_score=90, total_hours_studied=12.345)
        assert stats(profile) == {"discipline_score": 90, "discipline_target": 95, "total_hours": 12.3}
        card = session_card(Session(task="T", duration=5, video_id="dQw4w9WgXcQ"))
        assert card["thumbnail_url"].endswith("/dQw4w9WgXcQ/mqdefault.jpg")


class TestDailyQuote:
    def test_rotates_by_day_of_year(self):
        assert verse_index(date(2026, 1, 1)) == 1
        assert verse_index(date(2026, 1, 5)) == 0

    def test_quote_in_hindi(self):
        quote = daily_quote("hi", date(2026, 1, 5))
        assert quote["verse"] == GITA_VERSES[0]
        assert quote["translation"].startswith("तुम्हें")
        assert quote["motivation"] in MOTIVATIONAL_QUOTES

    def test_unknown_language(self):
        with pytest.raises(ValueError):
            daily_quote("fr")


class TestPushNotification:
    def test_maps_payload(self):
        note = notification_from_push({"title": "Study time", "body": "Block 2 starts"})
        assert note.title == "Study time"
        assert note.body == "Block 2 starts"
        assert note.icon == DEFAULT_ICON

    def test_title_required(self):
        with pytest.raises(ValueError):
            notification_from_push({"body": "x"})
