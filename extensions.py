"""
Shared Flask extensions, created unbound and attached inside create_app().
"""

from flask_cors import CORS
from flask_socketio import SocketIO
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

# async_mode is supplied per app from config in create_app()
socketio = SocketIO(cors_allowed_origins="*")

cors = CORS()
