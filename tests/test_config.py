import pytest

from tsbench.config import BenchmarkConfig, ConfigError


class TestValidate:
    def test_defaults_are_valid(self):
        BenchmarkConfig().validate()

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"clients": 0}, "Number of clients should be >= 1"),
            ({"batch_size": 0}, "Batch size should be >= 1 and <= count"),
            ({"count": 5, "batch_size": 6}, "Batch size should be >= 1 and <= count"),
            ({"database": ""}, "Database should be provided"),
            ({"server": "localhost"}, "Invalid server URL"),
            ({"format": "xml"}, "Unknown output format"),
            ({"sink": "carbon"}, "Unknown sink"),
            ({"sink": "kafka", "kafka_topic": ""}, "Kafka topic should be provided"),
        ],
    )
    def test_rejects(self, overrides, message):
        with pytest.raises(ConfigError, match=message):
            BenchmarkConfig(**overrides).validate()

    def test_batch_equal_to_count_is_allowed(self):
        BenchmarkConfig(count=5, batch_size=5).validate()

    def test_config_error_is_value_error(self):
        assert issubclass(ConfigError, ValueError)


class TestClientSeed:
    def test_unseeded(self):
        assert BenchmarkConfig().client_seed(3) is None

    def test_offset_by_client(self):
        config = BenchmarkConfig(seed=100)
        assert config.client_seed(0) == 100
        assert config.client_seed(4) == 104
