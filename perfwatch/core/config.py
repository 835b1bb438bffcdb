"""
Application configuration for perfwatch.

Provides environment-aware settings with conservative defaults. Detection
ratios, smoothing factors and retention caps live here instead of being
scattered through the monitor as "magic numbers".
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnomalyThresholds(BaseModel):
	"""
	Ratio thresholds used by the anomaly detector.

	Rationale:
	- Processing time uses a 10x ratio plus an absolute floor so that noise
	  between tiny durations (0.1ms -> 1.1ms) never counts as a regression.
	- Memory severity scales with the spike ratio.
	"""

	performance_drop_ratio: float = Field(
		0.7, gt=0.0, le=1.0, description="Score below baseline * ratio is degradation"
	)
	processing_time_spike: float = Field(
		10.0, gt=1.0, description="Processing time above baseline * ratio is a spike"
	)
	min_processing_time_ms: float = Field(
		10.0, ge=0.0, description="Absolute floor for processing time spikes"
	)
	success_rate_drop_ratio: float = Field(
		0.8, gt=0.0, le=1.0, description="Success rate below baseline * ratio is an error spike"
	)
	memory_spike_threshold: float = Field(
		2.0, gt=1.0, description="Memory above baseline * ratio is a spike"
	)
	memory_high_ratio: float = Field(3.0, gt=1.0, description="Spike ratio for high severity")
	memory_critical_ratio: float = Field(5.0, gt=1.0, description="Spike ratio for critical severity")
	connection_drop_threshold: float = Field(
		0.5, gt=0.0, le=1.0, description="Connections below baseline * ratio is a drop"
	)

	@model_validator(mode="after")
	def _check_memory_ratios(self) -> "AnomalyThresholds":
		if not self.memory_spike_threshold <= self.memory_high_ratio <= self.memory_critical_ratio:
			raise ValueError(
				"memory ratios must satisfy spike_threshold <= high_ratio <= critical_ratio"
			)
		return self


class SmoothingConfig(BaseModel):
	"""
	Exponential smoothing of the baseline.

	Notes:
	- alpha: weight of the newest observation for every field.
	- memory_spike_alpha: weight used for memory_usage while it sits above
	  baseline * memory_spike_factor, so a sustained spike is not absorbed.
	"""

	alpha: float = Field(0.1, gt=0.0, le=1.0)
	memory_spike_alpha: float = Field(0.01, gt=0.0, le=1.0)
	memory_spike_factor: float = Field(1.5, gt=1.0)


class AlertConfig(BaseModel):
	"""
	Alert retention and storm suppression.

	Notes:
	- storm_limit memory_spike alerts inside storm_window_seconds suppress
	  further memory_spike alerts regardless of cooldown.
	- max_recent_alerts bounds the alert list; max_active_alerts bounds what
	  get_active_alerts returns.
	"""

	storm_window_seconds: float = Field(300.0, gt=0.0)
	storm_limit: int = Field(3, ge=1)
	max_recent_alerts: int = Field(20, ge=1)
	max_active_alerts: int = Field(10, ge=1)


class HealthThresholds(BaseModel):
	"""
	Performance score cut-offs for the overall health label.
	"""

	excellent: float = Field(90.0, ge=0.0, le=100.0)
	good: float = Field(75.0, ge=0.0, le=100.0)
	fair: float = Field(50.0, ge=0.0, le=100.0)
	poor: float = Field(25.0, ge=0.0, le=100.0)

	@model_validator(mode="after")
	def _check_order(self) -> "HealthThresholds":
		if not self.excellent >= self.good >= self.fair >= self.poor:
			raise ValueError("health thresholds must be descending")
		return self


class MonitorConfig(BaseModel):
	"""
	Performance monitor configuration.

	All durations are in seconds.
	"""

	monitoring_interval: float = Field(30.0, gt=0.0, description="Delay between checks")
	alert_cooldown: float = Field(300.0, ge=0.0, description="Minimum gap between alerts of one type")
	baseline_window: float = Field(3600.0, gt=0.0, description="Baseline age that forces a rebuild")
	metrics_timeout: float = Field(5.0, gt=0.0, description="Timeout for the metrics provider")
	max_anomaly_history: int = Field(10, ge=1)

	thresholds: AnomalyThresholds = AnomalyThresholds()
	smoothing: SmoothingConfig = SmoothingConfig()
	alerts: AlertConfig = AlertConfig()
	health: HealthThresholds = HealthThresholds()


class Config(BaseSettings):
	"""
	Global configuration with environment overrides.

	Nested values use a double underscore, e.g.
	PERFWATCH_MONITOR__MONITORING_INTERVAL=10.
	"""

	model_config = SettingsConfigDict(
		env_prefix="PERFWATCH_",
		env_nested_delimiter="__",
		env_file=".env",
		extra="ignore",
	)

	log_level: str = Field("INFO", description="Default logging level")
	logs_dir: Path = Field(Path("logs"), description="Directory for log files")
	monitor: MonitorConfig = MonitorConfig()

	def model_post_init(self, __context: object) -> None:
		self.logs_dir.mkdir(parents=True, exist_ok=True)


config = Config()
