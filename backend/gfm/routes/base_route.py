from flask import Blueprint, jsonify
from sqlalchemy import text
from gfm.extensions import db

base_bp = Blueprint("base", __name__)

@base_bp.route("/")
def home():
    return jsonify({"success": True, "message": "GFM attendance backend"})

@base_bp.route("/health")
def health():
    try:
        db.session.execute(text("SELECT 1"))
        return jsonify({"success": True, "status": "ok"})
    except Exception as e:
        return jsonify({"success": False, "status": "error", "message": str(e)}), 500
