"""Tests for the dark mode preference store."""

import json
import threading

from coinboard.services.preferences import PreferenceStore


class TestPreferenceStore:
    """Test suite for PreferenceStore."""

    def test_defaults_to_light_mode(self, tmp_path):
        store = PreferenceStore(str(tmp_path / "preferences.json"))

        assert store.dark_mode() is False

    def test_toggle_flips_and_returns_new_value(self, tmp_path):
        store = PreferenceStore(str(tmp_path / "preferences.json"))

        assert store.toggle_dark_mode() is True
        assert store.dark_mode() is True
        assert store.toggle_dark_mode() is False
        assert store.dark_mode() is False

    def test_preference_survives_new_store_instance(self, tmp_path):
        path = str(tmp_path / "nested" / "preferences.json")
        PreferenceStore(path).set_dark_mode(True)

        assert PreferenceStore(path).dark_mode() is True

    def test_file_uses_configured_key(self, tmp_path):
        path = tmp_path / "preferences.json"
        PreferenceStore(str(path)).set_dark_mode(True)

        assert json.loads(path.read_text()) == {"cryptoDarkMode": True}

    def test_other_keys_are_preserved(self, tmp_path):
        path = tmp_path / "preferences.json"
        path.write_text(json.dumps({"language": "en"}))

        PreferenceStore(str(path)).set_dark_mode(True)

        assert json.loads(path.read_text()) == {"language": "en", "cryptoDarkMode": True}

    def test_corrupt_file_falls_back_to_default(self, tmp_path):
        path = tmp_path / "preferences.json"
        path.write_text("{not json")
        store = PreferenceStore(str(path))

        assert store.dark_mode() is False
        assert store.toggle_dark_mode() is True
        assert store.dark_mode() is True

    def test_non_boolean_value_reads_as_false(self, tmp_path):
        path = tmp_path / "preferences.json"
        path.write_text(json.dumps({"cryptoDarkMode": "true"}))

        assert PreferenceStore(str(path)).dark_mode() is False

    def test_concurrent_toggles_are_not_lost(self, tmp_path):
        store = PreferenceStore(str(tmp_path / "preferences.json"))

        threads = [threading.Thread(target=store.toggle_dark_mode) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        # An even number of toggles lands back on the default
        assert store.dark_mode() is False
