"""
Unit tests for configuration.
"""

from saveyourgoblin.config import Settings


class TestSettings:
    """Test the Settings configuration class"""

    def test_default_values(self, monkeypatch):
        """Test that default values are set correctly"""
        monkeypatch.delenv("MODEL_PROVIDER", raising=False)
        monkeypatch.delenv("STREAM_CHUNK_SIZE", raising=False)
        settings = Settings(_env_file=None)
        assert settings.model_provider in ["openai", "generic", "mock"]
        assert isinstance(settings.model_name, str)
        assert settings.variation_temperature == 0.9
        assert settings.stream_chunk_size == 50
        assert isinstance(settings.debug, bool)

    def test_environment_variables(self, monkeypatch):
        """Test that environment variables override defaults"""
        monkeypatch.setenv("MODEL_NAME", "test-model")
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("MODEL_PROVIDER", "mock")
        monkeypatch.setenv("STREAM_CHUNK_SIZE", "10")

        settings = Settings(_env_file=None)
        assert settings.model_name == "test-model"
        assert settings.debug is True
        assert settings.model_provider == "mock"
        assert settings.stream_chunk_size == 10

    def test_database_path(self, monkeypatch):
        monkeypatch.delenv("DATABASE_PATH", raising=False)
        settings = Settings(_env_file=None)
        assert settings.database_path.endswith("saveyourgoblin.db")
