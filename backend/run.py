from abgame import create_app, socketio

app = create_app()
 
if __name__ == '__main__':
    # Socket.IO server serves both the HTTP API and the /ws game channel
    socketio.run(app, host='0.0.0.0', port=app.config['PORT'], debug=True)
