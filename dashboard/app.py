import os
from typing import Any

import pandas as pd
import plotly.express as px
import requests
import streamlit as st

try:
    from streamlit_autorefresh import st_autorefresh
except Exception:  # pragma: no cover - optional dependency fallback
    st_autorefresh = None


DEFAULT_BACKEND_URL = os.getenv("BACKEND_API_URL", "http://localhost:8000/api")
REQUEST_TIMEOUT = 8
STATUS_COLORS = {"normal": "#16a34a", "low": "#dc2626", "high": "#d97706"}
CATEGORY_LABELS = {
    "soil_moisture": "Soil moisture",
    "temperature": "Temperature",
    "water_level": "Water level",
    "other": "Other",
}


st.set_page_config(page_title="Smart Farm Dashboard", layout="wide")


def api_get(base_url: str, path: str) -> tuple[Any | None, str | None]:
    try:
        response = requests.get(f"{base_url}{path}", timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        return response.json(), None
    except requests.RequestException as exc:
        return None, str(exc)


def api_send(
    base_url: str,
    method: str,
    path: str,
    payload: dict[str, Any] | None = None,
) -> tuple[Any | None, str | None]:
    try:
        response = requests.request(method, f"{base_url}{path}", json=payload or {}, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        if response.content:
            return response.json(), None
        return {}, None
    except requests.RequestException as exc:
        return None, str(exc)


def format_reading(sensor: dict[str, Any]) -> str:
    reading = sensor.get("latest_reading")
    if not reading:
        return "N/A"
    return f"{reading['value']:.1f}{reading.get('unit', '')}"


st.title("Smart Farm Dashboard")
st.caption("Soil moisture, temperature and water level across the farm, with threshold alerts")

with st.sidebar:
    st.header("Settings")
    backend_url = st.text_input("Backend API URL", value=DEFAULT_BACKEND_URL)
    auto_refresh = st.checkbox("Auto refresh", value=True)
    refresh_seconds = st.slider("Refresh interval (seconds)", min_value=5, max_value=60, value=15, step=5)

if auto_refresh and st_autorefresh:
    st_autorefresh(interval=refresh_seconds * 1000, key="farm-refresh")

health_payload, health_error = api_get(backend_url, "/health")
if health_error:
    st.error(f"Backend unavailable: {health_error}")
    st.stop()

dashboard, dashboard_error = api_get(backend_url, "/dashboard")
if dashboard_error:
    st.error("Failed to load sensor data")
    st.caption(dashboard_error)
    if st.button("Retry"):
        _, retry_error = api_send(backend_url, "POST", "/dashboard/refresh")
        if retry_error:
            st.error(f"Retry failed: {retry_error}")
        else:
            st.rerun()
    st.stop()

snapshot = dashboard["snapshot"]
alerts = dashboard["alerts"]
metrics = snapshot["metrics"]

_, header_right = st.columns([4, 1])
with header_right:
    st.metric("Unread alerts", alerts["unread_count"])

m1, m2, m3, m4 = st.columns(4)
m1.metric("Soil moisture", f"{metrics['avg_soil_moisture']:.1f}%")
m2.metric("Temperature", f"{metrics['avg_temperature']:.1f}°C")
m3.metric("Water tank", f"{metrics['tank_level']:.0f}%")
with m4:
    if "pump_active" not in st.session_state:
        st.session_state.pump_active = False
    st.write("Irrigation pump")
    st.write("Active" if st.session_state.pump_active else "Inactive")
    if st.button("Turn OFF" if st.session_state.pump_active else "Turn ON", use_container_width=True):
        st.session_state.pump_active = not st.session_state.pump_active
        st.rerun()

map_tab, sensors_tab, analytics_tab, ai_tab = st.tabs(["Sensor Map", "Sensor Data", "Analytics", "Recommendations"])

with map_tab:
    markers = snapshot["markers"]
    if not markers:
        st.info("No sensors registered yet")
    else:
        df_markers = pd.DataFrame(markers)
        df_markers["color"] = df_markers["status"].map(STATUS_COLORS)
        st.map(df_markers, latitude="latitude", longitude="longitude", color="color")
        counts = metrics["status_counts"]
        c1, c2, c3 = st.columns(3)
        c1.metric("Normal", counts.get("normal", 0))
        c2.metric("Low", counts.get("low", 0))
        c3.metric("High", counts.get("high", 0))

with sensors_tab:
    sensors = snapshot["sensors"]
    if not sensors:
        st.info("No sensors registered yet")
    columns = st.columns(3)
    for index, sensor in enumerate(sensors):
        with columns[index % 3]:
            st.subheader(sensor["name"])
            st.caption(CATEGORY_LABELS.get(sensor["category"], sensor["category"]))
            st.metric("Latest", format_reading(sensor), sensor["status"].upper(), delta_color="off")
            if sensor.get("latitude") is not None and sensor.get("longitude") is not None:
                st.caption(f"Lat: {sensor['latitude']:.4f}, Lng: {sensor['longitude']:.4f}")
            reading = sensor.get("latest_reading")
            st.caption(f"Last reading: {reading['timestamp'] if reading else 'No data'}")

with analytics_tab:
    st.subheader("Sensor Trends")
    series = snapshot["series"]
    if not series:
        st.info("No readings in the last 24 hours")
    else:
        df = pd.DataFrame(series)
        value_columns = [column for column in ("moisture", "temperature") if column in df.columns]
        fig = px.line(df, x="time", y=value_columns, markers=True, title="24-hour sensor data trends")
        st.plotly_chart(fig, use_container_width=True)

with ai_tab:
    recommendations, rec_error = api_get(backend_url, "/recommendations")
    if rec_error:
        st.warning(f"Recommendations unavailable: {rec_error}")
    elif not recommendations["items"]:
        st.info("Your AI assistant will provide suggestions based on sensor data")
    else:
        st.caption(f"{recommendations['count']} pending")
        for rec in recommendations["items"]:
            st.markdown(f"**{rec['recommendation_type'].replace('_', ' ').title()}** - {rec['message']}")
            sensor_label = f" · {rec['sensor_name']}" if rec.get("sensor_name") else ""
            st.caption(f"Confidence {rec['confidence_score']:.0%} ({rec['confidence_level']}){sensor_label}")
            apply_col, dismiss_col = st.columns(2)
            if apply_col.button("Apply", key=f"apply-{rec['id']}"):
                _, err = api_send(backend_url, "POST", f"/recommendations/{rec['id']}/apply")
                st.error(err) if err else st.rerun()
            if dismiss_col.button("Dismiss", key=f"dismiss-{rec['id']}"):
                _, err = api_send(backend_url, "POST", f"/recommendations/{rec['id']}/dismiss")
                st.error(err) if err else st.rerun()

st.subheader("Notifications")
items = alerts["items"]
if not items:
    st.success("No notifications")
else:
    if st.button("Clear All"):
        _, clear_error = api_send(backend_url, "DELETE", "/alerts")
        st.error(clear_error) if clear_error else st.rerun()
    for alert in items:
        text = f"**{alert['title']}** - {alert['message']} ({alert['created_at']})"
        alert_col, action_col = st.columns([5, 1])
        if alert["acknowledged"]:
            alert_col.info(text)
        elif alert["severity"] == "critical":
            alert_col.error(text)
        else:
            alert_col.warning(text)
        if not alert["acknowledged"] and action_col.button("Mark read", key=f"ack-{alert['id']}"):
            _, ack_error = api_send(backend_url, "POST", f"/alerts/{alert['id']}/acknowledge")
            st.error(ack_error) if ack_error else st.rerun()
