from datetime import date, datetime, timezone

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)
DAY = 24 * 60 * 60

SCENARIOS = {
    "valid": {"variant": "signed", "name": "Alice", "birth_date": date(2000, 1, 1)},
    "under_age": {"variant": "signed", "name": "Bob", "birth_date": date(2010, 1, 1)},
    "tampered_signature": {"variant": "signed", "name": "Alice", "birth_date": date(2000, 1, 1), "flip_signature": True},
    "expired": {"variant": "signed", "name": "Alice", "birth_date": date(2000, 1, 1), "verify_after_days": 400},
    "zk_valid": {"variant": "zk", "name": "Alice", "birth_year": 2000},
    "zk_min_age_tampered": {"variant": "zk", "name": "Alice", "birth_year": 2000, "set_min_age": "21"},
}
