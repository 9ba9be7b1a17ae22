"""
One-dimensional Kalman filter for smoothing a single gaze axis
"""

from gaze_pointer import constants as const


class ScalarKalmanFilter:
    """
    Scalar recursive estimator with a constant-position model.

    Each axis gets its own instance; instances share no state.
    """

    def __init__(
        self,
        process_noise: float = const.KALMAN_PROCESS_NOISE,
        measurement_noise: float = const.KALMAN_MEASUREMENT_NOISE,
        initial: float = const.NEUTRAL_GAZE,
    ):
        self.process_noise = float(process_noise)
        self.measurement_noise = float(measurement_noise)
        self.estimate = float(initial)
        self.error_covariance = const.KALMAN_INITIAL_COVARIANCE

    def update(self, measurement: float) -> float:
        """
        Fold one measurement into the estimate.

        Args:
            measurement: Observed value

        Returns:
            Updated estimate
        """
        predicted_covariance = self.error_covariance + self.process_noise
        gain = predicted_covariance / (predicted_covariance + self.measurement_noise)
        self.estimate = self.estimate + gain * (measurement - self.estimate)
        self.error_covariance = (1.0 - gain) * predicted_covariance
        return self.estimate

    def reset(self, initial: float = const.NEUTRAL_GAZE) -> None:
        """Return to a neutral estimate with unit covariance."""
        self.estimate = float(initial)
        self.error_covariance = const.KALMAN_INITIAL_COVARIANCE

    def current(self) -> float:
        return self.estimate

    def __repr__(self) -> str:
        return (
            f"ScalarKalmanFilter(estimate={self.estimate:.4f}, "
            f"covariance={self.error_covariance:.6f}, q={self.process_noise}, r={self.measurement_noise})"
        )
