"""
Vista Streamlit para WITSML Monitor (MVC)

Esta vista NO implementa el generador, el parser ni el playback.
Solo:
- sube archivos XML/JSON y los entrega al PlaybackController
- muestra DisplayState.current (tarjetas) y DisplayState.history (graficos)
- arma SeriesConfig + ParameterSpec para el generador y ofrece la descarga

Contrato con Controller:
- ctrl.cargar_archivo(nombre, contenido)
- ctrl.get_estado()
- ctrl.play() / ctrl.pause() / ctrl.reset() / ctrl.next_speed()
- ctrl.actualizar()
- ctrl.display.current / ctrl.display.history
"""

import logging
import time

import pandas as pd
import streamlit as st

from witsml_monitor.config.settings import SETTINGS
from witsml_monitor.controller.playback import EstadoPlayback, PlaybackController
from witsml_monitor.model.canales import PARAMETROS_DEFAULT
from witsml_monitor.model.errores import ConfigError, EmptyDatasetError, ParseError
from witsml_monitor.model.generador import SampleGenerator
from witsml_monitor.model.muestra import ParameterSpec, SeriesConfig
from witsml_monitor.model.serializador import FORMATOS, MIME_TYPES, nombre_archivo, serializar

logger = logging.getLogger(__name__)


# Tarjetas del dashboard: (campo, etiqueta, unidad)
TARJETAS = (
    ("hookLoad", "Hook Load", "kips"),
    ("blockPosition", "Block Position", "ft"),
    ("weightOnBit", "Weight on Bit", "klbs"),
    ("rop", "ROP", "ft/hr"),
    ("rotarySpeed", "Rotary Speed", "rpm"),
    ("torque", "Torque", "ft-lbs"),
    ("mudFlowIn", "Mud Flow In", "gal/min"),
    ("pumpPressure", "Pump Pressure", "psi"),
    ("stroke1", "Stroke 1", "spm"),
    ("stroke2", "Stroke 2", "spm"),
    ("mudFlowOut", "Mud Flow Out", "gal/min"),
    ("tempDelta", "Temp Δ", "°F"),
)


# ============================================================
# Helpers de graficos
# ============================================================

def _historial_a_df(hist) -> pd.DataFrame:
    if hist is None or len(hist) == 0:
        return pd.DataFrame()
    return pd.DataFrame([dict(fila) for fila in hist])


def _plot_line_multi(df: pd.DataFrame, x: str, ys: list, titulo: str):
    if x not in df.columns:
        return

    cols = [x] + [y for y in ys if y in df.columns]
    if len(cols) <= 1:
        return

    st.write(titulo)

    dfp = df[cols].dropna().copy()
    if len(dfp) == 0:
        return

    dfp = dfp.set_index(x)
    st.line_chart(dfp)


# ============================================================
# Helpers de session_state
# ============================================================

def _get_ctrl() -> PlaybackController:
    ctrl = st.session_state.get("ctrl")
    if ctrl is None:
        ctrl = PlaybackController()
        st.session_state["ctrl"] = ctrl
    return ctrl


# ============================================================
# Seccion: Dashboard (playback)
# ============================================================

def _cargar_subida(ctrl: PlaybackController, archivo) -> None:
    """
    Carga un archivo subido solo una vez (Streamlit lo re-entrega en cada rerun).
    Si falla, el dataset anterior sigue activo.
    """
    clave = (archivo.name, archivo.size)
    if st.session_state.get("archivo_cargado") == clave:
        return

    try:
        ctrl.cargar_archivo(archivo.name, archivo.getvalue())
    except (ParseError, EmptyDatasetError) as e:
        logger.warning(f"No se pudo cargar '{archivo.name}': {e}")
        st.session_state["error_carga"] = str(e)
    else:
        st.session_state["error_carga"] = None
    st.session_state["archivo_cargado"] = clave


def _seccion_dashboard():
    ctrl = _get_ctrl()

    archivo = st.sidebar.file_uploader("Subir datos (XML / JSON)", type=None, key="archivo_playback")
    if archivo is not None:
        _cargar_subida(ctrl, archivo)

    if st.session_state.get("error_carga"):
        st.error("Error de formato: " + st.session_state["error_carga"])

    # Ticks vencidos desde el ultimo rerun
    ctrl.actualizar()
    estado = ctrl.get_estado()

    # ------------------------------
    # Controles
    # ------------------------------
    col_play, col_pause, col_reset, col_speed, col_estado = st.columns([1, 1, 1, 1, 2])

    with col_play:
        if st.button("Play", disabled=(estado == EstadoPlayback.PLAYING)):
            try:
                ctrl.play()
            except EmptyDatasetError as e:
                st.warning(str(e))
            else:
                st.rerun()

    with col_pause:
        if st.button("Pausa", disabled=(estado != EstadoPlayback.PLAYING)):
            ctrl.pause()
            st.rerun()

    with col_reset:
        if st.button("Reset"):
            ctrl.reset()
            st.rerun()

    with col_speed:
        if st.button(f"Velocidad x{ctrl.get_velocidad():g}"):
            ctrl.next_speed()
            st.rerun()

    with col_estado:
        st.write("Estado:", estado.value)
        st.progress(int(ctrl.progreso * 100))

    if ctrl.get_dataset() is None:
        st.info("Sube un archivo generado (.xml o .json) para iniciar el playback")
        return

    # ------------------------------
    # Profundidades + tarjetas
    # ------------------------------
    current = ctrl.display.current

    if ctrl.display.timestamp:
        st.caption(f"Punto {ctrl.get_indice() + 1} de {len(ctrl.get_dataset())} - {ctrl.display.timestamp}")

    col_bit, col_hole = st.columns(2)
    col_bit.metric("Bit Depth (m)", f"{current['bitDepth']:.2f}")
    col_hole.metric("Hole Depth (m)", f"{current['holeDepth']:.2f}")

    cols = st.columns(6)
    for i, (campo, etiqueta, unidad) in enumerate(TARJETAS):
        cols[i % 6].metric(f"{etiqueta} ({unidad})", f"{current.get(campo, 0.0):.2f}")

    # ------------------------------
    # Graficos desde la ventana de historial
    # ------------------------------
    df = _historial_a_df(ctrl.display.history)

    if len(df) > 0:
        col_a, col_b = st.columns(2)
        with col_a:
            _plot_line_multi(df, "time", ["depth"], "Depth")
            _plot_line_multi(df, "time", ["flowIn", "flowOut"], "Mud Flow System")
        with col_b:
            _plot_line_multi(df, "time", ["torque", "speed"], "Torque & Rotary Speed")
            _plot_line_multi(df, "time", ["pressure"], "Pump Pressure Trend")
        _plot_line_multi(df, "time", ["rop"], "Rate of Penetration")

    # Auto-refresh cuando esta reproduciendo
    if ctrl.get_estado() == EstadoPlayback.PLAYING:
        espera = ctrl.segundos_para_tick()
        time.sleep(min(SETTINGS.refresh_s, espera if espera is not None else SETTINGS.refresh_s))
        st.rerun()


# ============================================================
# Seccion: Generar datos
# ============================================================

def _editor_parametros() -> list:
    parametros = []
    for p in PARAMETROS_DEFAULT:
        with st.expander(f"{p.label} ({p.unit})", expanded=False):
            enabled = st.checkbox("Habilitado", value=True, key=f"en_{p.name}")
            c1, c2 = st.columns(2)
            minimo = c1.number_input("Min", value=float(p.min), key=f"min_{p.name}")
            maximo = c2.number_input("Max", value=float(p.max), key=f"max_{p.name}")
        parametros.append((p, enabled, minimo, maximo))
    return parametros


def _seccion_generar():
    st.subheader("Generador de datos WITSML")

    col_cfg, col_par = st.columns([1, 1])

    with col_cfg:
        st.write("Configuracion")
        puntos = st.number_input(
            "Cantidad de puntos",
            min_value=int(SETTINGS.puntos_min),
            max_value=int(SETTINGS.puntos_max),
            value=int(SETTINGS.puntos_default),
            step=1,
        )
        inicio = st.number_input("Profundidad inicial (m)", value=SETTINGS.profundidad_inicio_default, step=0.1)
        fin = st.number_input("Profundidad final (m)", value=SETTINGS.profundidad_fin_default, step=0.1)
        intervalo = st.number_input(
            "Intervalo de tiempo (s)",
            min_value=float(SETTINGS.intervalo_min_s),
            value=float(SETTINGS.intervalo_default_s),
            step=0.1,
        )

    with col_par:
        st.write("Parametros")
        editados = _editor_parametros()

    try:
        config = SeriesConfig(
            point_count=int(puntos),
            start_depth=float(inicio),
            end_depth=float(fin),
            time_interval_s=float(intervalo),
        )
        parametros = [
            ParameterSpec(p.name, p.label, minimo, maximo, p.unit, enabled)
            for p, enabled, minimo, maximo in editados
        ]
    except ConfigError as e:
        st.error(f"Configuracion invalida: {e}")
        return

    col_cfg.caption(f"Duracion simulada: {config.duration_minutes:.1f} minutos")

    if st.button("Generar dataset"):
        try:
            st.session_state["dataset_generado"] = SampleGenerator().generate(config, parametros)
        except ConfigError as e:
            st.error(f"Configuracion invalida: {e}")
            return

    dataset = st.session_state.get("dataset_generado")
    if dataset is None:
        return

    st.success(f"Dataset listo: {len(dataset)} puntos, {len(dataset.parameters)} parametros")

    for col, formato in zip(st.columns(len(FORMATOS)), FORMATOS):
        col.download_button(
            f"Descargar {formato.upper()}",
            data=serializar(dataset, formato),
            file_name=nombre_archivo(formato),
            mime=MIME_TYPES[formato],
            key=f"descarga_{formato}",
        )


# ============================================================
# UI principal
# ============================================================

def iniciar():
    st.set_page_config(page_title="WITSML Monitor", layout="wide")

    st.title("Drilling Surface Parameters")
    st.caption("WITSML Data Visualization System")

    st.sidebar.header("Configuracion")

    seccion = st.sidebar.selectbox(
        "Seccion",
        ["Dashboard", "Generar datos"],
        index=0,
    )

    if seccion == "Dashboard":
        _seccion_dashboard()

    if seccion == "Generar datos":
        _seccion_generar()


if __name__ == "__main__":
    iniciar()
