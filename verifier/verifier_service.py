import time

from flask import Flask, request, jsonify

from core.config import Settings, load_settings
from core.logging import setup_logging
from credcrypto.keys import KeyProvider
from verifier.validator import CredentialValidator

def create_app(settings: Settings = None, public_key=None, clock=time.time) -> Flask:
    """
    `public_key` is the issuer's Ed25519 key (raw bytes or hex), falling back
    to ISSUER_PUBLIC_KEY. Only KEY_MODE=demo may omit it: the demo key is
    the same in every process, a generated one is not.
    """
    settings = settings or load_settings()
    public_key = public_key or settings.issuer_public_key
    if public_key is None:
        if settings.key_mode != "demo":
            raise ValueError("ISSUER_PUBLIC_KEY is required unless KEY_MODE=demo")
        public_key = KeyProvider("demo").public_key
    validator = CredentialValidator(public_key=public_key)

    app = Flask(__name__)

    @app.post("/verify")
    def verify():
        """
        Request JSON: {"payload": "<string read from the QR code>"}
        """
        data = request.get_json(force=True, silent=True)
        payload = data.get("payload") if isinstance(data, dict) else None
        if not isinstance(payload, str) or not payload:
            return jsonify({"error": "payload must be a non-empty string"}), 400

        result = validator.verify_transport(payload, now=clock())
        return jsonify(result.to_dict()), 200

    @app.get("/health")
    def health():
        return {"ok": True}, 200

    return app

if __name__ == "__main__":
    settings = load_settings()
    setup_logging(settings.log_level, json_format=settings.log_json)
    app = create_app(settings)
    app.run(host="127.0.0.1", port=settings.verifier_port, debug=settings.is_dev)
