from agri_monitor.api.routes import get_dashboard_session, router

__all__ = ["get_dashboard_session", "router"]
