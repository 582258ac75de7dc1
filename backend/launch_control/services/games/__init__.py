"""Game domain services: the launch control state machine, timers, scoring
and record stores.

This package holds the game logic imported by socket handlers and HTTP
routes, keeping transport concerns separated from core game mechanics.
Nothing here needs a Flask request; SqlRecordStore and SocketIOScheduler
only need the app and socketio objects they are given.
"""
