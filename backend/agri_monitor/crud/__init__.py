from agri_monitor.crud.crud_sensor import sensor_crud
from agri_monitor.crud.crud_settings import settings_crud
from agri_monitor.crud.crud_recommendation import recommendation_crud

__all__ = ["sensor_crud", "settings_crud", "recommendation_crud"]
