import logging
import time
from datetime import date

from flask import Flask, request, jsonify

from core.config import Settings, load_settings
from core.errors import AgeRequirementError, ValidationError
from core.logging import setup_logging
from credcrypto.keys import KeyProvider
from credcrypto.signing import SignatureEngine
from issuer.issue import issue_signed_credential
from wallet.transport import encode_for_transport
from wallet.zk_proof import CommitmentProofEngine, issue_zk_credential

logger = logging.getLogger(__name__)

def create_app(settings: Settings = None, key_provider: KeyProvider = None, clock=time.time) -> Flask:
    settings = settings or load_settings()
    key_provider = key_provider or KeyProvider(settings.key_mode)
    key_provider.initialize()

    signature_engine = SignatureEngine(key_provider)
    proof_engine = CommitmentProofEngine()

    app = Flask(__name__)

    @app.errorhandler(ValidationError)
    def handle_validation(e):
        logger.info("Issuance rejected: %s", e)
        return jsonify({"error": e.reason, "detail": str(e)}), 400

    @app.errorhandler(AgeRequirementError)
    def handle_age(e):
        logger.info("Issuance refused: %s", e.reason)
        return jsonify({"error": e.reason, "detail": str(e)}), 403

    @app.post('/issue')
    def issue():
        """
        Request JSON:
        {
            "name": "Alice",
            "birth_date": "YYYY-MM-DD"
        }
        """
        data = request.get_json(force=True, silent=True)
        if not isinstance(data, dict):
            raise ValidationError("request body must be a JSON object")

        birth_raw = data.get("birth_date")
        if not isinstance(birth_raw, str):
            raise ValidationError("birth_date must be a YYYY-MM-DD string")
        try:
            birth_date = date.fromisoformat(birth_raw)
        except ValueError:
            raise ValidationError(f"invalid birth_date {birth_raw!r}") from None

        signed = issue_signed_credential(
            data.get("name"), birth_date, clock(), signature_engine,
            issuer_id=settings.issuer_id,
        )
        return jsonify({
            "credential": signed.to_wire(),
            "transport": encode_for_transport(signed),
        }), 200

    @app.post('/issue/zk')
    def issue_zk():
        """
        Request JSON:
        {
            "name": "Alice",
            "birth_year": 2000
        }
        """
        data = request.get_json(force=True, silent=True)
        if not isinstance(data, dict):
            raise ValidationError("request body must be a JSON object")

        zk_credential = issue_zk_credential(
            data.get("name"), data.get("birth_year"), clock(), proof_engine,
            issuer_id=settings.issuer_id,
        )
        return jsonify({
            "credential": zk_credential.to_wire(),
            "transport": encode_for_transport(zk_credential),
        }), 200

    @app.get("/pubkey")
    def pubkey():
        return jsonify({"public_key": key_provider.get_or_create_keypair().public_key_hex})

    @app.get("/health")
    def health():
        return {"ok": True}, 200

    return app

if __name__ == '__main__':
    settings = load_settings()
    setup_logging(settings.log_level, json_format=settings.log_json)
    app = create_app(settings)
    app.run(host='127.0.0.1', port=settings.issuer_port, debug=settings.is_dev)
