from flask_sqlalchemy import SQLAlchemy
from flask_jwt_extended import JWTManager

db = SQLAlchemy()
jwt = JWTManager()

# Revoked token jtis. Process-local, cleared on restart.
BLOCKLIST = set()
