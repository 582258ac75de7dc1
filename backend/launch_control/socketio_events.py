from flask import current_app, request
from flask_socketio import emit
from launch_control import socketio
from launch_control.services.games.controller import LaunchControl
from launch_control.services.games.records import SqlRecordStore
from launch_control.services.games.scheduler import ManualScheduler, SocketIOScheduler
from typing import Dict, Optional

# One launch control session per connected socket, keyed by sid
_controllers: Dict[str, LaunchControl] = {}

def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore

def _make_scheduler(app):
    if app.config.get('LAUNCH_SCHEDULER') == 'manual':
        return ManualScheduler()
    return SocketIOScheduler(socketio, app)

def _current_controller() -> Optional[LaunchControl]:
    controller = _controllers.get(_get_sid())
    if controller is None:
        emit('error', {'message': 'no active session'})
    return controller

def handle_connect():
    app = current_app._get_current_object()
    sid = _get_sid()
    namespace = request.namespace

    def _push_state(snapshot):
        # Use socketio.emit since this may be called from a background task
        socketio.emit('state_update', snapshot, to=sid, namespace=namespace)

    scheduler = _make_scheduler(app)
    previous = _controllers.pop(sid, None)
    if previous is not None:
        previous.close()
    controller = LaunchControl(
        scheduler=scheduler,
        records=SqlRecordStore(app),
        clock=scheduler.now,
        on_change=_push_state,
        name=sid[:8],
    )
    _controllers[sid] = controller
    app.logger.info(f"[lc-connect] session={controller.name} namespace={namespace}")
    emit('connected', {'message': f'Connected to {namespace}'})
    emit('state_update', controller.snapshot())

def handle_disconnect(*args):
    controller = _controllers.pop(_get_sid(), None)
    if controller is None:
        return
    controller.close()
    current_app.logger.info(f"[lc-disconnect] session={controller.name}")

def handle_arm(data=None):
    controller = _current_controller()
    if controller is not None:
        controller.arm()

def handle_react(data=None):
    # Click and space bar both land here; the controller ignores anything
    # that does not match its current state.
    controller = _current_controller()
    if controller is not None:
        controller.handle_reaction()

def handle_reset(data=None):
    controller = _current_controller()
    if controller is not None:
        controller.reset()

def handle_state(data=None):
    controller = _current_controller()
    if controller is not None:
        emit('state_update', controller.snapshot())

def handle_ping(data=None):
    emit('pong', data or {})

def active_controllers():
    return list(_controllers.values())

def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
        socketio.on_event('arm', handle_arm, namespace=namespace)
        socketio.on_event('react', handle_react, namespace=namespace)
        socketio.on_event('reset', handle_reset, namespace=namespace)
        socketio.on_event('state', handle_state, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
