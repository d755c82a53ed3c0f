"""Property-based tests for configuration management."""

import json
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
from hypothesis import given
from hypothesis import strategies as st

from haiku_feed.config import Config
from haiku_feed.errors import ConfigurationError

feed_entries = st.lists(
    st.fixed_dictionaries(
        {
            "name": st.text(
                alphabet=st.characters(whitelist_categories=("Ll", "Lu", "Nd")),
                min_size=1,
                max_size=20,
            ),
            "slug": st.text(alphabet="abcdefghijklmnop", min_size=3, max_size=12),
            "enabled": st.booleans(),
        }
    ),
    min_size=1,
    max_size=10,
)


class TestConfigProperties:
    """Property-based tests for Config class."""

    @given(feed_entries)
    def test_configured_feeds_property(self, entries):
        """Exactly the enabled feeds of feeds.json are used, in file order."""
        feeds = [
            {
                "name": entry["name"],
                "url": f"https://{entry['slug']}.example.com/rss",
                "enabled": entry["enabled"],
            }
            for entry in entries
        ]
        expected = [(f["name"], f["url"]) for f in feeds if f["enabled"]]

        with tempfile.TemporaryDirectory() as tmp:
            feeds_file = Path(tmp) / "feeds.json"
            feeds_file.write_text(json.dumps({"feeds": feeds}), encoding="utf-8")

            with patch.dict(os.environ, {"FEEDS_FILE": str(feeds_file)}, clear=True):
                config = Config()
                if not expected:
                    with pytest.raises(ConfigurationError):
                        config.get_feed_sources()
                    return
                sources = config.get_feed_sources()

        assert [(s.name, s.url) for s in sources] == expected

    @given(st.integers(min_value=1, max_value=65535), st.integers(min_value=1, max_value=86400))
    def test_server_settings_property(self, port, interval):
        env = {"HAIKU_PORT": str(port), "HAIKU_POLL_INTERVAL": str(interval)}
        with patch.dict(os.environ, env, clear=True):
            server = Config().get_server_config()

        assert server.port == port
        assert server.poll_interval_seconds == float(interval)
