import logging
import os
from datetime import timedelta

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from auth_routes import auth_bp
from category_routes import category_bp
from extensions import jwt, mongo
from product_routes import product_bp
from utils import MongoJSONProvider

# --- Load environment and initialize app ---

load_dotenv()
import certifi

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

DEFAULT_JWT_SECRET = "change-me-in-production"


def jwt_secret():
    secret = os.getenv("JWT_SECRET")
    if not secret:
        logging.getLogger(__name__).warning("JWT_SECRET is not set; tokens are signed with the built-in development key")
        return DEFAULT_JWT_SECRET
    return secret


app = Flask(__name__)
app.json = MongoJSONProvider(app)
app.config["MONGO_URI"] = os.getenv("MONGO_URI", "mongodb://localhost:27017/ecommerce")
app.config["JWT_SECRET_KEY"] = jwt_secret()
app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(days=int(os.getenv("JWT_EXPIRES_DAYS", "7")))
# clients send the bare token: "Authorization: <jwt>"
app.config["JWT_HEADER_TYPE"] = ""
app.config["JWT_TOKEN_LOCATION"] = ["headers"]

mongo_options = {}
if app.config["MONGO_URI"].startswith("mongodb+srv://") or os.getenv("MONGO_TLS", "").lower() in ("1", "true", "yes"):
    mongo_options["tlsCAFile"] = certifi.where()
mongo.init_app(app, **mongo_options)
jwt.init_app(app)
CORS(app)

app.register_blueprint(auth_bp)
app.register_blueprint(category_bp)
app.register_blueprint(product_bp)


# --- ROUTES ---
@app.route("/")
def index():
    return "<h1>Welcome to ecommerce app</h1>"


@app.errorhandler(HTTPException)
def handle_http_error(error):
    return jsonify({"success": False, "message": error.description}), error.code


if __name__ == "__main__":
    port = int(os.getenv("PORT", "8080"))
    print(f"[INFO] Starting Flask app on http://localhost:{port} ...")
    app.run(port=port, debug=os.getenv("DEV_MODE", "").lower() in ("1", "true", "yes"))
