from launch_control import create_app, db, socketio

app = create_app()

with app.app_context():
    db.create_all()

if __name__ == '__main__':
    # Use SocketIO server to enable websockets in dev
    socketio.run(app, debug=True)
