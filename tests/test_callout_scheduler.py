from __future__ import annotations

import math

import pytest

from callouts.errors import InvalidDeltaError, UnknownPriorityError
from callouts.models import ActiveCallout, CalloutPriority
from callouts.scheduler import (
    CATEGORY_COOLDOWN,
    DEFAULT_DISPLAY_DURATION,
    FADE_DURATION,
    GLOBAL_COOLDOWN,
    CalloutScheduler,
)
from callouts.settings import SchedulerSettings


def test_new_scheduler_is_empty():
    s = CalloutScheduler()
    assert s.pending == ()
    assert s.active is None
    assert s.get_current_display() is None
    assert s.is_idle


def test_enqueue_has_no_side_effects(make_callout):
    s = CalloutScheduler()
    s.enqueue(make_callout())
    s.enqueue(make_callout())
    assert s.pending_count == 2
    assert s.active is None
    assert s.global_cooldown == 0.0
    assert s.category_cooldown(CalloutPriority.TACTICAL) == 0.0


def test_dequeues_on_advance(make_callout):
    s = CalloutScheduler()
    s.enqueue(make_callout(duration=2.5))
    promoted = s.advance(0.016)
    assert promoted is not None
    assert s.active is not None
    assert s.pending_count == 0


def test_current_display_returns_active_message(make_callout):
    s = CalloutScheduler()
    s.enqueue(make_callout(text="Hello!"))
    s.advance(0.016)
    display = s.get_current_display()
    assert display is not None
    assert display.message.text == "Hello!"
    assert display.opacity == pytest.approx(1.0)


def test_critical_beats_earlier_flavor(make_callout):
    s = CalloutScheduler()
    s.enqueue(make_callout(text="Flavor", priority=CalloutPriority.FLAVOR))
    s.enqueue(make_callout(text="Critical", priority=CalloutPriority.CRITICAL))
    s.advance(0.016)
    assert s.get_current_display().message.text == "Critical"
    assert [m.text for m in s.pending] == ["Flavor"]


def test_fifo_within_category_and_order_of_others_kept(make_callout):
    s = CalloutScheduler()
    s.enqueue(make_callout(text="a"))
    s.enqueue(make_callout(text="f", priority=CalloutPriority.FLAVOR))
    s.enqueue(make_callout(text="b"))
    s.enqueue(make_callout(text="r", priority=CalloutPriority.REACTION))
    s.advance(0.0)
    assert s.active.message.text == "a"
    assert [m.text for m in s.pending] == ["f", "b", "r"]


def test_promotion_starts_both_cooldowns_only_for_its_category(make_callout):
    s = CalloutScheduler()
    s.enqueue(make_callout(priority=CalloutPriority.REACTION))
    s.advance(0.016)
    assert s.global_cooldown == GLOBAL_COOLDOWN
    assert s.category_cooldown(CalloutPriority.REACTION) == CATEGORY_COOLDOWN
    for other in (CalloutPriority.CRITICAL, CalloutPriority.TACTICAL, CalloutPriority.FLAVOR):
        assert s.category_cooldown(other) == 0.0


def test_expired_callout_then_new_critical_promotes(make_callout):
    s = CalloutScheduler()
    s.enqueue(make_callout(text="First"))
    s.advance(0.016)
    s.advance(10)
    assert s.active is None
    assert s.global_cooldown == 0.0
    assert s.category_cooldown(CalloutPriority.TACTICAL) == 0.0

    s.enqueue(make_callout(text="Second", priority=CalloutPriority.CRITICAL))
    s.advance(0.016)
    display = s.get_current_display()
    assert display is not None
    assert display.message.text == "Second"


def test_global_cooldown_blocks_even_eligible_critical(make_callout):
    s = CalloutScheduler()
    s.enqueue(make_callout(text="short", duration=0.5))
    s.advance(0.0)
    s.enqueue(make_callout(text="urgent", priority=CalloutPriority.CRITICAL))

    # short callout lives 0.5 + 0.5 fade; global cooldown still has 2s left
    s.advance(1.0)
    assert s.active is None
    assert s.global_cooldown == pytest.approx(2.0)
    assert s.category_cooldown(CalloutPriority.CRITICAL) == 0.0
    assert s.pending_count == 1

    s.advance(2.0)
    assert s.active.message.text == "urgent"


def test_category_cooldown_lets_other_category_interleave(make_callout):
    s = CalloutScheduler()
    s.enqueue(make_callout(text="t1"))
    s.enqueue(make_callout(text="t2"))
    s.enqueue(make_callout(text="f1", priority=CalloutPriority.FLAVOR))
    s.advance(0.0)
    assert s.active.message.text == "t1"

    # t1 expires exactly when the global cooldown runs out; TACTICAL still cooling down
    s.advance(3.0)
    assert s.active.message.text == "f1"
    assert s.category_cooldown(CalloutPriority.TACTICAL) == pytest.approx(5.0)
    assert [m.text for m in s.pending] == ["t2"]


def test_cooled_down_empty_category_falls_through(make_callout):
    s = CalloutScheduler()
    s.enqueue(make_callout(text="react", priority=CalloutPriority.REACTION))
    s.advance(0.016)
    assert s.active.message.priority is CalloutPriority.REACTION


def test_nothing_eligible_leaves_slot_empty(make_callout):
    s = CalloutScheduler()
    s.enqueue(make_callout(text="t1", duration=0.5))
    s.enqueue(make_callout(text="t2"))
    s.advance(0.0)
    s.advance(3.0)
    assert s.active is None
    assert [m.text for m in s.pending] == ["t2"]
    s.advance(5.0)
    assert s.active.message.text == "t2"


def test_fades_near_end(make_callout):
    s = CalloutScheduler()
    s.enqueue(make_callout(duration=1))
    s.advance(0.016)
    s.advance(1.3)
    display = s.get_current_display()
    assert display is not None
    assert display.opacity < 1.0
    assert display.opacity == pytest.approx((1.5 - 1.316) / FADE_DURATION)


def test_opacity_full_then_linear_fade(make_callout):
    s = CalloutScheduler()
    s.enqueue(make_callout(duration=1))
    s.advance(0.0)
    assert s.get_current_display().opacity == 1.0
    s.advance(0.875)
    assert s.get_current_display().opacity == 1.0

    seen = []
    for _ in range(3):
        s.advance(0.125)
        seen.append(s.get_current_display().opacity)
    assert seen == [1.0, 0.75, 0.5]
    assert seen[1] > seen[2]

    # remaining hits exactly 0: the slot clears instead of showing a 0-opacity frame
    s.advance(0.25)
    assert s.get_current_display() is None


def test_opacity_is_zero_at_zero_remaining(make_callout):
    active = ActiveCallout(message=make_callout(), remaining=0.0, fade_window=FADE_DURATION)
    assert active.opacity() == 0.0
    assert active.expired


def test_get_current_display_does_not_mutate(make_callout):
    s = CalloutScheduler()
    s.enqueue(make_callout(duration=1))
    s.advance(1.25)
    before = s.active.remaining
    first = s.get_current_display()
    second = s.get_current_display()
    assert first == second
    assert s.active.remaining == before


@pytest.mark.parametrize("duration", [0, -1.0])
def test_non_positive_duration_uses_default(make_callout, duration):
    s = CalloutScheduler()
    s.enqueue(make_callout(duration=duration))
    s.advance(0.0)
    assert s.active.remaining == DEFAULT_DISPLAY_DURATION + FADE_DURATION

    s.advance(1.5)
    assert s.active is not None
    s.advance(1.5)
    assert s.active is None


def test_expired_message_is_not_requeued(make_callout):
    s = CalloutScheduler()
    s.enqueue(make_callout())
    s.advance(0.0)
    s.advance(20.0)
    assert s.is_idle


@pytest.mark.parametrize("dt", [-0.1, math.nan, math.inf])
def test_invalid_dt_is_rejected_without_state_change(make_callout, dt):
    s = CalloutScheduler()
    s.enqueue(make_callout())
    s.advance(0.5)
    remaining = s.active.remaining
    with pytest.raises(InvalidDeltaError):
        s.advance(dt)
    assert s.active.remaining == remaining
    assert s.global_cooldown == GLOBAL_COOLDOWN


def test_invalid_dt_is_a_value_error():
    with pytest.raises(ValueError):
        CalloutScheduler().advance(-1)


def test_enqueue_rejects_foreign_priority(make_callout):
    s = CalloutScheduler()
    msg = make_callout()
    object.__setattr__(msg, "priority", "LOUD")
    with pytest.raises(UnknownPriorityError):
        s.enqueue(msg)
    assert s.pending_count == 0


def test_clear_resets_everything(make_callout):
    s = CalloutScheduler()
    s.enqueue(make_callout())
    s.enqueue(make_callout())
    s.advance(0.1)
    s.clear()
    assert s.is_idle
    assert s.global_cooldown == 0.0
    assert s.category_cooldown(CalloutPriority.TACTICAL) == 0.0


def test_custom_settings_drive_pacing(make_callout):
    settings = SchedulerSettings(global_cooldown=1.0, category_cooldown=2.0, default_display_duration=1.0, fade_duration=0.25)
    s = CalloutScheduler(settings)
    s.enqueue(make_callout(duration=0))
    s.advance(0.0)
    assert s.active.remaining == 1.25
    assert s.active.fade_window == 0.25
    assert s.global_cooldown == 1.0
    assert s.category_cooldown(CalloutPriority.TACTICAL) == 2.0
