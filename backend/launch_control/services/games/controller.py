"""Launch control: the reaction-time light sequence as a state machine.

One LaunchControl instance drives one player's session: arm() starts the
red -> amber -> green sequence through an injected scheduler, and
handle_reaction() interprets every user input (click or space bar) against
the current state. At most one light transition is pending at a time; it is
identified by a token that any cancellation invalidates, so a timer that
fires late can never turn the lights green.

Every public method and every timer callback runs under the instance lock,
which is what keeps overlapping inputs from recording a trial twice.
"""

import logging
import random
import threading
from collections import namedtuple
from enum import Enum
from typing import Callable, List, Optional

from .records import BEST_AVERAGE_KEY, BEST_SINGLE_KEY, is_improvement
from .scheduler import monotonic_ms
from .scoring import average, best, round_half_up, session_summary, verdict_for


logger = logging.getLogger('launch_control')

MAX_TRIES = 5
PRE_DELAY_MIN_MS = 400
PRE_DELAY_MAX_MS = 900

STATUS_IDLE = 'Prêt ?'
STATUS_READY = 'Ready…'
STATUS_SET = 'Set…'
STATUS_GO = 'GO !'
STATUS_FALSE_START = 'Faux départ !'
NEXT_TRIAL_HINT = 'Appuie sur “Armer” pour l’essai suivant.'

LIGHTS = ('red', 'amber', 'green')


class TrialState(str, Enum):
    IDLE = 'idle'
    ARMED = 'armed'
    FALSE_START = 'false_start'
    GO = 'go'
    RECORDED = 'recorded'


# delay_ms is the wait before the phase shows; None means the random pre-delay
Phase = namedtuple('Phase', ['name', 'delay_ms', 'lights', 'status'])

LIGHT_SEQUENCE = (
    Phase('ready', None, ('red',), STATUS_READY),
    Phase('set', 500, ('amber',), STATUS_SET),
    Phase('hold', 400, ('amber',), STATUS_SET),
    Phase('go', 400, ('green',), STATUS_GO),
)


def next_phase(index: int) -> Optional[Phase]:
    """Phase following LIGHT_SEQUENCE[index], or None once green is shown."""
    if index + 1 < len(LIGHT_SEQUENCE):
        return LIGHT_SEQUENCE[index + 1]
    return None


def lights_for(phase: Optional[Phase]) -> dict:
    on = phase.lights if phase else ()
    return {name: name in on for name in LIGHTS}


class Session:
    def __init__(self, max_tries: int = MAX_TRIES):
        self.max_tries = max_tries
        self.tries = 0
        self.reaction_times: List[int] = []
        self.state = TrialState.IDLE

    @property
    def complete(self) -> bool:
        return self.tries >= self.max_tries

    def record(self, reaction_ms: int) -> None:
        self.reaction_times.append(reaction_ms)
        self.tries += 1
        self.state = TrialState.RECORDED


class LaunchControl:
    def __init__(self, scheduler, records, clock: Optional[Callable[[], float]] = None,
                 rand: Callable[[], float] = random.random,
                 on_change: Optional[Callable[[dict], None]] = None,
                 name: str = 'local'):
        self.scheduler = scheduler
        self.records = records
        self.clock = clock or monotonic_ms
        self.rand = rand
        self.on_change = on_change
        self.name = name

        self._lock = threading.RLock()
        self._token = 0
        self._timer = None
        self._phase_index = -1
        self._go = False
        self._start_ms = 0.0
        self._closed = False

        self.session = Session()
        self.status = STATUS_IDLE
        self.result = ''
        self.verdict = None
        self.lights = lights_for(None)
        self.controls = {'arm': True, 'retry': False}
        self.record_single = records.read(BEST_SINGLE_KEY)
        self.record_average = records.read(BEST_AVERAGE_KEY)

    @property
    def state(self) -> TrialState:
        return self.session.state

    @property
    def go(self) -> bool:
        return self._go

    # ---- light sequence ----

    def arm(self) -> bool:
        with self._lock:
            if self._closed or self.state in (TrialState.ARMED, TrialState.GO) or self.session.complete:
                return False
            self.session.state = TrialState.ARMED
            self._go = False
            self._phase_index = -1
            self.status = STATUS_READY
            self.lights = lights_for(None)
            self.controls = {'arm': False, 'retry': False}
            pre_delay = PRE_DELAY_MIN_MS + self.rand() * (PRE_DELAY_MAX_MS - PRE_DELAY_MIN_MS)
            logger.info(f"[lc-arm] session={self.name} try={self.session.tries + 1}/{self.session.max_tries} pre_delay={pre_delay:.0f}ms")
            self._schedule(pre_delay)
            self._notify()
            return True

    def _schedule(self, delay_ms: float) -> None:
        self._token += 1
        token = self._token
        self._timer = self.scheduler.call_later(delay_ms, lambda: self._on_timer(token))

    def _cancel_pending(self) -> None:
        self._token += 1
        if self._timer is not None:
            self.scheduler.cancel(self._timer)
            self._timer = None

    def _on_timer(self, token: int) -> None:
        with self._lock:
            if token != self._token or self.state is not TrialState.ARMED:
                logger.debug(f"[lc-timer-skip] session={self.name} token={token} current={self._token}")
                return
            self._timer = None
            self._phase_index += 1
            phase = LIGHT_SEQUENCE[self._phase_index]
            self.lights = lights_for(phase)
            self.status = phase.status
            upcoming = next_phase(self._phase_index)
            if upcoming is None:
                self._go = True
                self._start_ms = self.clock()
                self.session.state = TrialState.GO
            else:
                self._schedule(upcoming.delay_ms)
            logger.info(f"[lc-phase] session={self.name} phase={phase.name}")
            self._notify()

    # ---- reaction detector ----

    def handle_reaction(self) -> Optional[int]:
        """Interpret one click or key press. Returns the recorded time, if any."""
        with self._lock:
            if self._closed:
                return None
            if self.state is TrialState.ARMED and not self._go:
                self._false_start()
                return None
            if self.state is not TrialState.GO or not self._go:
                return None

            reaction = round_half_up(self.clock() - self._start_ms)
            self._go = False
            self._timer = None
            self.session.record(reaction)
            self.status = f"Réaction : {reaction} ms"
            self.lights = lights_for(None)
            self.controls = {'arm': not self.session.complete, 'retry': False}
            logger.info(f"[lc-reaction] session={self.name} try={self.session.tries}/{self.session.max_tries} reaction={reaction}ms")
            if self.session.complete:
                self._finalize()
            else:
                self.result = NEXT_TRIAL_HINT
            self._notify()
            return reaction

    def _false_start(self) -> None:
        self._cancel_pending()
        self.session.state = TrialState.FALSE_START
        self.status = STATUS_FALSE_START
        self.lights = lights_for(None)
        allowed = not self.session.complete
        self.controls = {'arm': allowed, 'retry': allowed}
        logger.info(f"[lc-false-start] session={self.name} phase_index={self._phase_index} tries={self.session.tries}")
        self._notify()

    # ---- session aggregate ----

    def _finalize(self) -> None:
        times = self.session.reaction_times
        final_avg = average(times)
        final_best = best(times)

        stored_single = self.record_single
        stored_average = self.record_average
        try:
            stored_single = self.records.read(BEST_SINGLE_KEY)
            stored_average = self.records.read(BEST_AVERAGE_KEY)
            if is_improvement(final_best, stored_single):
                self.records.write(BEST_SINGLE_KEY, final_best)
                logger.info(f"[lc-record] session={self.name} key={BEST_SINGLE_KEY} {stored_single} -> {final_best}")
                stored_single = final_best
            if is_improvement(final_avg, stored_average):
                self.records.write(BEST_AVERAGE_KEY, final_avg)
                logger.info(f"[lc-record] session={self.name} key={BEST_AVERAGE_KEY} {stored_average} -> {final_avg}")
                stored_average = final_avg
        except Exception as exc:
            # The session still ends with a summary; only the records are stale
            logger.warning(f"[lc-record-error] session={self.name} records not saved: {exc!r}")
        self.record_single = stored_single
        self.record_average = stored_average
        self.verdict = verdict_for(final_avg)
        self.result = session_summary(final_avg, final_best, self.record_average, self.record_single, self.verdict)
        self.controls = {'arm': False, 'retry': True}
        logger.info(f"[lc-session] session={self.name} average={final_avg}ms best={final_best}ms verdict={self.verdict.label!r}")

    def reset(self) -> None:
        with self._lock:
            self._cancel_pending()
            self._go = False
            self._phase_index = -1
            self.session = Session(self.session.max_tries)
            self.status = STATUS_IDLE
            self.result = ''
            self.verdict = None
            self.lights = lights_for(None)
            self.controls = {'arm': True, 'retry': False}
            # another session may have set a record meanwhile
            self.record_single = self.records.read(BEST_SINGLE_KEY)
            self.record_average = self.records.read(BEST_AVERAGE_KEY)
            logger.info(f"[lc-reset] session={self.name}")
            self._notify()

    def close(self) -> None:
        with self._lock:
            self._cancel_pending()
            self._closed = True
            self.on_change = None

    # ---- readouts ----

    def snapshot(self) -> dict:
        with self._lock:
            times = list(self.session.reaction_times)
            return {
                'state': self.state.value,
                'status': self.status,
                'lights': dict(self.lights),
                'controls': dict(self.controls),
                'tries': self.session.tries,
                'max_tries': self.session.max_tries,
                'reaction_times': times,
                'last': times[-1] if times else None,
                'average': average(times),
                'best': best(times),
                'record_single': self.record_single,
                'record_average': self.record_average,
                'result': self.result,
                'verdict': self.verdict._asdict() if self.verdict else None,
            }

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self.snapshot())
