from .gateway import StorageGateway
from .tables import SENSOR_READINGS, Base, SensorReadingRow

__all__ = ["StorageGateway", "SENSOR_READINGS", "Base", "SensorReadingRow"]
