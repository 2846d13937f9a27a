from datetime import timedelta
import time

from shared.utils.logger import LoggerProtocol


class Timer:
    def __init__(self, label: str, logger: LoggerProtocol):
        self.label = label
        self.logger = logger
        self.elapsed = 0.0

    def __enter__(self) -> "Timer":
        self.start = time.perf_counter()
        self.logger.info(f"⏳ Début {self.label}...")
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.elapsed = time.perf_counter() - self.start
        if exc_type is None:
            self.logger.info(f"✅ {self.label} terminé en {self.format_duration(self.elapsed)}.")
        else:
            self.logger.warning(f"❌ {self.label} interrompu après {self.format_duration(self.elapsed)}.")

    @staticmethod
    def format_duration(seconds: float) -> str:
        if seconds < 60:
            return f"{seconds:.2f} sec"
        elif seconds < 3600:
            mins, secs = divmod(seconds, 60)
            return f"{int(mins)} min {secs:.1f} sec"
        else:
            td = timedelta(seconds=int(seconds))
            return str(td)
