import os

DEFAULT_CORS_ORIGINS = (
    "http://localhost:5173,"
    "http://127.0.0.1:5173,"
    "http://localhost:5174,"
    "http://127.0.0.1:5174"
)

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///launch_control.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Light sequence timers: 'socketio' (background tasks) or 'manual' (simulated time)
    LAUNCH_SCHEDULER = os.environ.get('LAUNCH_SCHEDULER', 'socketio')
    # Front-end origins allowed for HTTP and websocket traffic
    CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', DEFAULT_CORS_ORIGINS).split(',') if o.strip()]
