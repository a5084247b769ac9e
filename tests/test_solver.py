"""Tests für Kandidatentage, Slot-Speicher, Planer und Priorisierung."""

import threading
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from config.defaults import default_shop_config
from config.schema import DeliveryHoursConfig, GreenPolicyConfig, ShopConfig
from models.delivery_slot import DeliverySlot
from models.product import Product, ProductType
from solver.candidate_days import possible_days
from solver.prioritizer import is_high_priority, prioritize
from solver.scheduler import DeliveryScheduler, ScheduleResult
from solver.slot_store import DeliverySlotStore, overlaps
from solver.state_file import load_state, save_state


TZ = ZoneInfo("Europe/Stockholm")
MONDAY = date(2024, 1, 1)      # Montag
WEDNESDAY = date(2024, 1, 3)   # Mittwoch
GREEN = [4, 5, 6]              # Fr, Sa, So


# ─── Hilfsfunktionen ──────────────────────────────────────────────────────────

def make_store() -> DeliverySlotStore:
    return DeliverySlotStore(DeliveryHoursConfig(first_hour=9, last_hour=19),
                             GreenPolicyConfig(green_days=GREEN), TZ)


def make_scheduler(**scheduling) -> DeliveryScheduler:
    config = default_shop_config()
    if scheduling:
        config = config.model_copy(update={
            "scheduling": config.scheduling.model_copy(update=scheduling)
        })
    return DeliveryScheduler(config)


def slot_at(day: date, hour: int) -> DeliverySlot:
    return DeliverySlot.at(day, hour, TZ, GREEN)


def local(day: date, hour: int) -> datetime:
    return datetime(day.year, day.month, day.day, hour, tzinfo=TZ)


# ─── Kandidatentage ───────────────────────────────────────────────────────────

class TestPossibleDays:
    def test_lead_time_beyond_horizon_is_empty(self):
        """Szenario A: Vorlauf 15 Tage bei Horizont 14 → keine Tage."""
        p1 = Product.create("P1", days_in_advance=15)
        assert possible_days(p1, MONDAY, 14) == []

    def test_lead_time_equal_horizon_is_empty(self):
        p = Product.create("P", days_in_advance=14)
        assert possible_days(p, MONDAY, 14) == []

    def test_zero_lead_time_starts_tomorrow(self):
        """Vorlauf 0 schließt heute trotzdem aus."""
        p = Product.create("P")
        days = possible_days(p, MONDAY, 14)
        assert days[0] == MONDAY + timedelta(days=1)
        assert days[-1] == MONDAY + timedelta(days=14)
        assert len(days) == 14

    def test_lead_time_respected(self):
        """Frühester Tag ist today + days_in_advance, nicht today + 1."""
        p = Product.create("P", days_in_advance=5)
        days = possible_days(p, MONDAY, 14)
        assert days[0] == MONDAY + timedelta(days=5)
        assert all(d >= MONDAY + timedelta(days=5) for d in days)

    def test_only_allowed_weekdays(self):
        p = Product.create("P", delivery_days={0, 2}, days_in_advance=1)
        days = possible_days(p, MONDAY, 14)
        assert days
        for d in days:
            assert d.weekday() in {0, 2}
            assert d > MONDAY

    def test_strictly_ascending_and_idempotent(self):
        p = Product.create("P", delivery_days={1, 3, 5}, days_in_advance=2)
        first = possible_days(p, WEDNESDAY, 14)
        second = possible_days(p, WEDNESDAY, 14)
        assert first == second
        assert all(a < b for a, b in zip(first, first[1:]))

    @pytest.mark.parametrize("days_in_advance", [0, 1, 3, 6, 13])
    def test_properties_hold(self, days_in_advance):
        p = Product.create("P", delivery_days={0, 4, 6}, days_in_advance=days_in_advance)
        for d in possible_days(p, MONDAY, 14):
            assert d.weekday() in p.delivery_days
            assert d > MONDAY
            assert d >= MONDAY + timedelta(days=days_in_advance)

    def test_invalid_horizon(self):
        with pytest.raises(ValueError):
            possible_days(Product.create("P"), MONDAY, 0)


# ─── Überlappung ──────────────────────────────────────────────────────────────

class TestOverlaps:
    def setup_method(self):
        self.slot = slot_at(MONDAY, 10)   # 10:00–11:00

    def test_partial_overlap(self):
        assert overlaps(self.slot, local(MONDAY, 10) + timedelta(minutes=30), local(MONDAY, 12))
        assert overlaps(self.slot, local(MONDAY, 9), local(MONDAY, 10) + timedelta(minutes=30))

    def test_touching_boundaries_do_not_overlap(self):
        assert not overlaps(self.slot, local(MONDAY, 9), local(MONDAY, 10))
        assert not overlaps(self.slot, local(MONDAY, 11), local(MONDAY, 12))

    def test_containing_interval_overlaps(self):
        assert overlaps(self.slot, local(MONDAY, 9), local(MONDAY, 12))
        assert overlaps(self.slot, local(MONDAY, 0), local(MONDAY + timedelta(days=1), 0))

    def test_contained_interval_overlaps(self):
        inner_begin = local(MONDAY, 10) + timedelta(minutes=15)
        assert overlaps(self.slot, inner_begin, inner_begin + timedelta(minutes=15))

    def test_identical_interval_overlaps(self):
        assert overlaps(self.slot, self.slot.begin, self.slot.end)

    def test_same_begin_longer_interval_overlaps(self):
        assert overlaps(self.slot, self.slot.begin, self.slot.end + timedelta(hours=1))
        assert overlaps(self.slot, self.slot.begin - timedelta(hours=1), self.slot.end)

    def test_disjoint(self):
        assert not overlaps(self.slot, local(MONDAY, 14), local(MONDAY, 15))

    def test_store_exposes_overlaps(self):
        assert DeliverySlotStore.overlaps(self.slot, local(MONDAY, 9), local(MONDAY, 12))


# ─── Slot-Speicher ────────────────────────────────────────────────────────────

class TestDeliverySlotStore:
    def test_capacity_from_hours(self):
        assert make_store().capacity == 11

    def test_next_free_slot_on_empty_day(self):
        slot = make_store().next_free_slot(MONDAY)
        assert slot is not None
        assert slot.begin == local(MONDAY, 9)
        assert slot.end == local(MONDAY, 10)

    def test_next_free_slot_skips_taken_hours(self):
        store = make_store()
        assert store.commit(slot_at(MONDAY, 9))
        assert store.commit(slot_at(MONDAY, 10))
        assert store.commit(slot_at(MONDAY, 12))
        assert store.next_free_slot(MONDAY).begin == local(MONDAY, 11)

    def test_next_free_slot_none_when_full(self):
        store = make_store()
        for h in range(9, 20):
            assert store.commit(slot_at(MONDAY, h))
        assert store.count_for_day(MONDAY) == 11
        assert store.next_free_slot(MONDAY) is None

    def test_commit_rejects_duplicate(self):
        store = make_store()
        assert store.commit(slot_at(MONDAY, 9))
        assert not store.commit(slot_at(MONDAY, 9))
        assert len(store) == 1

    def test_commit_rejects_off_grid(self):
        store = make_store()
        assert not store.commit(slot_at(MONDAY, 8))
        assert not store.commit(slot_at(MONDAY, 20))
        half = DeliverySlot.starting_at(local(MONDAY, 10) + timedelta(minutes=30), GREEN)
        assert not store.commit(half)
        assert len(store) == 0

    def test_count_for_day_separates_days(self):
        store = make_store()
        store.commit(slot_at(MONDAY, 9))
        store.commit(slot_at(MONDAY, 19))
        store.commit(slot_at(MONDAY + timedelta(days=1), 9))
        assert store.count_for_day(MONDAY) == 2
        assert store.count_for_day(MONDAY + timedelta(days=1)) == 1
        assert store.count_for_day(MONDAY + timedelta(days=2)) == 0

    def test_add_slot_with_naive_datetime(self):
        store = make_store()
        assert store.add_slot(datetime(2024, 1, 5, 9))
        (slot,) = store.slots()
        assert slot.begin == local(date(2024, 1, 5), 9)
        assert slot.is_green  # Freitag

    def test_add_slot_converts_foreign_zone(self):
        """Fr 01:00 Tokio ist Do 17:00 Stockholm: Wochentag der Lager-Zone zählt."""
        store = make_store()
        assert store.add_slot(datetime(2024, 1, 5, 1, tzinfo=ZoneInfo("Asia/Tokyo")))
        (slot,) = store.slots()
        assert slot.begin.tzinfo == TZ
        assert slot.begin == local(date(2024, 1, 4), 17)
        assert slot.day == date(2024, 1, 4)
        assert not slot.is_green  # Donnerstag

    def test_reserve_assigns_product(self):
        store = make_store()
        p = Product.create("Milch")
        slot = store.reserve(MONDAY, p.id)
        assert slot.product_id == p.id
        assert slot in store

    def test_parallel_reserve_respects_capacity(self):
        store = make_store()
        results = []

        def worker(i):
            results.append(store.reserve(MONDAY, Product.create(f"P{i}").id))

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(1 for r in results if r is not None) == 11
        assert store.count_for_day(MONDAY) == 11
        assert len({s.begin for s in store.slots()}) == 11

    def test_snapshot_restore(self):
        store = make_store()
        store.commit(slot_at(MONDAY, 9))
        store.commit(slot_at(MONDAY, 10))
        snap = store.snapshot()

        other = make_store()
        assert other.restore(snap + [slot_at(MONDAY, 9)]) == 2
        assert other.slots() == store.slots()


# ─── Planer ───────────────────────────────────────────────────────────────────

class TestScheduleDelivery:
    def test_scenario_a_lead_time_beyond_horizon(self):
        """Szenario A: keine Kandidatentage → False, Speicher unverändert."""
        scheduler = make_scheduler()
        p1 = Product.create("P1", days_in_advance=15)
        days = scheduler.possible_days(p1, MONDAY)
        assert days == []
        assert scheduler.schedule_delivery(days, p1) is False
        assert len(scheduler.store) == 0

    def test_scenario_b_first_hour_tomorrow(self):
        """Szenario B: einzelnes Produkt → 09:00 am nächsten Tag."""
        scheduler = make_scheduler()
        p2 = Product.create("P2")
        assert scheduler.schedule_delivery(scheduler.possible_days(p2, MONDAY), p2)
        (slot,) = scheduler.store.slots()
        assert slot.begin == local(MONDAY + timedelta(days=1), 9)
        assert slot.product_id == p2.id

    def test_scenario_c_capacity_reached(self):
        """Szenario C: 12 Produkte am selben Tag bei Kapazität 11."""
        scheduler = make_scheduler()
        day = MONDAY + timedelta(days=1)
        outcomes = [
            scheduler.schedule_delivery([day], Product.create(f"P{i}"))
            for i in range(12)
        ]
        assert outcomes[:11] == [True] * 11
        assert outcomes[11] is False
        assert scheduler.store.count_for_day(day) == 11

    def test_overflow_moves_to_next_candidate_day(self):
        scheduler = make_scheduler()
        p = Product.create("P")
        days = scheduler.possible_days(p, MONDAY)
        for i in range(12):
            assert scheduler.schedule_delivery(days, Product.create(f"P{i}"))
        assert scheduler.store.count_for_day(days[0]) == 11
        assert scheduler.store.count_for_day(days[1]) == 1

    def test_exactly_one_slot_per_call(self):
        scheduler = make_scheduler()
        p = Product.create("P")
        assert scheduler.schedule_delivery(scheduler.possible_days(p, MONDAY), p)
        assert len(scheduler.store) == 1

    def test_capacity_never_exceeded(self):
        scheduler = make_scheduler()
        for i in range(200):
            p = Product.create(f"P{i}", delivery_days={1, 3})
            scheduler.schedule_delivery(scheduler.possible_days(p, MONDAY), p)
        per_day: dict = {}
        for s in scheduler.store.slots():
            per_day[s.day] = per_day.get(s.day, 0) + 1
        assert per_day
        assert max(per_day.values()) <= 11
        begins = [s.begin for s in scheduler.store.slots()]
        assert len(begins) == len(set(begins))


class TestRun:
    def test_run_filters_schedules_and_prioritizes(self):
        scheduler = make_scheduler()
        products = [
            Product.create("Milch"),
            Product.create("Erdbeeren", ProductType.TEMPORARY, {5, 6}),
            Product.create("Weinkiste", ProductType.EXTERNAL, days_in_advance=2),
            Product.create("Importkäse", ProductType.EXTERNAL, days_in_advance=5),
            Product.create("Spezialtee", days_in_advance=20),
        ]
        result = scheduler.run(products, MONDAY)

        assert {e.product.name for e in result.excluded} == {"Erdbeeren", "Weinkiste"}
        assert [p.name for p in result.unscheduled] == ["Spezialtee"]
        assert not result.is_complete
        assert len(result.entries) == 2
        cheese = result.get_product_entry(Product.create("Importkäse").id)
        assert cheese.product_name == "Importkäse"
        assert cheese.timestamp == local(MONDAY + timedelta(days=5), 9).astimezone(timezone.utc)
        assert cheese.timestamp.utcoffset() == timedelta(0)

    def test_first_product_wins_the_slot(self):
        scheduler = make_scheduler()
        a, b = Product.create("A"), Product.create("B")
        result = scheduler.run([a, b], MONDAY)
        tomorrow = MONDAY + timedelta(days=1)
        assert result.get_product_entry(a.id).timestamp == local(tomorrow, 9)
        assert result.get_product_entry(b.id).timestamp == local(tomorrow, 10)

    def test_result_json_roundtrip(self, tmp_path):
        scheduler = make_scheduler()
        result = scheduler.run([Product.create("Milch"), Product.create("Brot")], MONDAY)
        path = tmp_path / "schedule.json"
        result.save_json(path)
        loaded = ScheduleResult.load_json(path)
        assert loaded.as_pairs() == result.as_pairs()
        assert loaded.today == MONDAY

    def test_load_missing_result(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ScheduleResult.load_json(tmp_path / "fehlt.json")

    def test_load_corrupt_result(self, tmp_path):
        path = tmp_path / "schedule.json"
        path.write_text('{"today": "kein Datum"', encoding="utf-8")
        with pytest.raises(ValueError, match="Ergebnisdatei ungültig"):
            ScheduleResult.load_json(path)


# ─── Priorisierung ────────────────────────────────────────────────────────────

class TestPrioritize:
    def test_scenario_e_green_within_window_first(self):
        """Szenario E: grüner Freitag im Fenster vor früherem nicht-grünen Donnerstag."""
        thursday = slot_at(date(2024, 1, 4), 9)
        friday = slot_at(date(2024, 1, 5), 9)
        saturday = slot_at(date(2024, 1, 6), 9)   # grün, aber außerhalb des Fensters
        monday = slot_at(date(2024, 1, 8), 9)

        result = prioritize([monday, saturday, thursday, friday], WEDNESDAY, 3)

        assert [t for t, _ in result] == [
            friday.begin, thursday.begin, saturday.begin, monday.begin,
        ]
        assert [g for _, g in result] == [True, False, True, False]

    def test_tiers_and_ascending_within_tier(self):
        today = date(2024, 1, 4)   # Donnerstag → Fenster bis So 00:00
        slots = [slot_at(today + timedelta(days=d), h) for d in range(1, 8) for h in (9, 15)]
        result = prioritize(list(reversed(slots)), today, 3)
        flags = [is_high_priority(s, today, 3) for s in sorted(slots, key=lambda s: s.begin)]
        high_count = sum(flags)
        assert high_count == 4  # Fr + Sa, je zwei Slots

        times = [t for t, _ in result]
        high, rest = times[:high_count], times[high_count:]
        assert all(g for _, g in result[:high_count])
        assert high == sorted(high)
        assert rest == sorted(rest)
        assert len(set(times)) == len(times)

    def test_no_elements_dropped_with_equal_rank(self):
        """Mehrere grüne Slots gleichzeitig im Fenster gehen nicht verloren."""
        friday = date(2024, 1, 5)
        slots = [slot_at(friday, h) for h in range(9, 20)]
        assert len(prioritize(slots, WEDNESDAY, 3)) == 11

    def test_output_in_utc(self):
        slot = slot_at(date(2024, 1, 5), 9)
        ((ts, green),) = prioritize([slot], WEDNESDAY)
        assert ts.tzinfo == timezone.utc
        assert ts.hour == 8  # Stockholm im Winter: UTC+1
        assert green

    def test_zero_window_has_no_high_priority(self):
        slots = [slot_at(date(2024, 1, 5), 9), slot_at(date(2024, 1, 4), 9)]
        result = prioritize(slots, WEDNESDAY, 0)
        assert [t for t, _ in result] == sorted(s.begin for s in slots)


# ─── Zustandsdatei ────────────────────────────────────────────────────────────

class TestStateFile:
    def test_save_and_load(self, tmp_path):
        store = make_store()
        p = Product.create("Milch")
        store.reserve(MONDAY, p.id)
        store.reserve(date(2024, 1, 5), p.id)
        path = tmp_path / "state" / "slots.json"
        save_state(store, path)

        restored = make_store()
        assert load_state(restored, path) == 2
        assert restored.slots() == store.slots()
        assert [s.product_id for s in restored.slots()] == [p.id, p.id]
        assert restored.slots()[1].is_green

    def test_missing_file_is_empty(self, tmp_path):
        assert load_state(make_store(), tmp_path / "fehlt.json") == 0

    def test_corrupt_file_raises(self, tmp_path):
        path = tmp_path / "kaputt.json"
        path.write_text("{nicht json", encoding="utf-8")
        with pytest.raises(ValueError):
            load_state(make_store(), path)

    def test_restored_slots_block_scheduling(self, tmp_path):
        scheduler = make_scheduler()
        day = MONDAY + timedelta(days=1)
        for i in range(11):
            scheduler.schedule_delivery([day], Product.create(f"P{i}"))
        path = tmp_path / "slots.json"
        save_state(scheduler.store, path)

        fresh = make_scheduler()
        load_state(fresh.store, path)
        assert fresh.schedule_delivery([day], Product.create("Neu")) is False
