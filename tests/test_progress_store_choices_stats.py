import asyncio

from storyline.components.chapter_progress import ChoiceRecord
from storyline.components.session_identity import SessionIdentity
from storyline.events.bus import EVENT_CHOICE_MADE, EVENT_PLAY_TIME_UPDATED, EVENT_STATS_UPDATED
from tests.helpers import FakeClock, MemoryBackend, capture, make_store


def test_authenticated_choice_is_recorded_and_sent_remote():
    local, remote = MemoryBackend(), MemoryBackend()
    store, bus = make_store(local, remote)
    choices = capture(bus, EVENT_CHOICE_MADE)

    async def scenario():
        store.on_session_change(SessionIdentity(account_id="uid-1"))
        await store.flush()
        remote.calls.clear()
        store.record_choice(2, 3, 0, "Report the leak")
        await store.flush()

    asyncio.run(scenario())

    recorded = store.get_scene_choices(2, 3)
    assert len(recorded) == 1
    assert recorded[0].choice_index == 0
    assert recorded[0].text == "Report the leak"
    assert recorded[0].timestamp == 1_700_000_000_000
    assert store.stats.choices_made == 1
    assert ("set_progress", "uid-1") in remote.calls
    assert local.calls == []
    assert choices == [{"chapter": 2, "scene_number": 3, "choice_index": 0}]
    stored = remote.progress["uid-1"]["chapter2"]["choices"]["scene3"]
    assert stored == [{"id": 0, "text": "Report the leak", "timestamp": 1_700_000_000_000}]


def test_choices_accumulate_per_scene():
    store, _ = make_store()
    store.record_choice(1, 2, 0, "Stay")
    store.record_choice(1, 2, 1, "Leave")

    assert [record.choice_index for record in store.get_scene_choices(1, 2)] == [0, 1]
    assert store.get_scene_choices(1, 5) == []
    assert store.stats.choices_made == 2


def test_get_scene_choices_returns_a_copy():
    store, _ = make_store()
    store.record_choice(1, 1, 0, "Stay")
    store.get_scene_choices(1, 1).append(ChoiceRecord(choice_index=9, text="x", timestamp=0))
    assert len(store.get_scene_choices(1, 1)) == 1


def test_update_stats_clamps_into_range():
    store, bus = make_store()
    updates = capture(bus, EVENT_STATS_UPDATED)
    store.stats.reputation = 0

    store.update_stats({"reputation": -30, "integrity": 50, "moralPath": 5, "influence": -3})

    stats = store.stats
    assert stats.reputation == 0
    assert stats.integrity == 100
    assert stats.moral_path == 55
    assert stats.influence == 7
    assert updates[-1]["stats"]["moralPath"] == 55


def test_update_stats_ignores_unknown_keys_and_counters():
    local = MemoryBackend()
    store, _ = make_store(local)

    store.update_stats({"charisma": 10, "choicesMade": -5, "totalPlayTime": 30, "moral_path": -10})

    stats = store.stats
    assert stats.moral_path == 40
    assert stats.choices_made == 0
    assert stats.total_play_time == 0
    assert local.stats[None]["moralPath"] == 40


def test_stat_label_passthrough():
    store, _ = make_store()
    assert store.get_stat_label("integrity", 20) == "Corrupted"
    assert store.get_stat_label("integrity", 21) == "Compromised"


def test_play_time_accrues_whole_minutes_and_carries_remainder():
    monotonic = FakeClock(1000.0)
    store, bus = make_store(monotonic=monotonic)
    updates = capture(bus, EVENT_PLAY_TIME_UPDATED)

    monotonic.advance(150)
    assert store.update_play_time() == 2
    monotonic.advance(30)
    assert store.update_play_time() == 1
    monotonic.advance(20)
    assert store.update_play_time() == 0

    assert store.stats.total_play_time == 3
    assert updates[-1] == {"total_play_time": 3}


def test_formatted_play_time():
    store, _ = make_store()
    store.stats.total_play_time = 42
    assert store.get_formatted_play_time() == "42 mins"
    store.stats.total_play_time = 125
    assert store.get_formatted_play_time() == "2h 5m"
