import pytest

from witsml_monitor.controller.playback import EstadoPlayback
from witsml_monitor.model.canales import PARAMETROS_DEFAULT
from witsml_monitor.model.errores import EmptyDatasetError, ParseError
from witsml_monitor.model.muestra import Dataset, SeriesConfig
from witsml_monitor.model.serializador import to_xml

from conftest import crear_dataset


def _reproducir_hasta_el_final(ctrl, reloj, limite=10_000):
    for _ in range(limite):
        if ctrl.get_estado() == EstadoPlayback.FINISHED:
            return
        reloj.avanzar(ctrl.intervalo_tick_s())
        ctrl.actualizar()
    raise AssertionError("el playback no termino")


# ----------------------------
# Carga
# ----------------------------

def test_cargar_emite_el_punto_cero(ctrl):
    ctrl.load_dataset(crear_dataset(3))

    assert ctrl.get_estado() == EstadoPlayback.STOPPED
    assert ctrl.get_indice() == 0
    assert ctrl.display.current["bitDepth"] == 100.0
    assert len(ctrl.display.history) == 1
    assert not ctrl.timer_activo()


def test_cargar_dataset_vacio(ctrl, dataset):
    vacio = Dataset(metadata=dataset.metadata, parameters=(), data=())
    with pytest.raises(EmptyDatasetError):
        ctrl.load_dataset(vacio)
    assert ctrl.get_dataset() is None


def test_cargar_mientras_reproduce_reinicia(ctrl, reloj):
    ctrl.load_dataset(crear_dataset(5))
    ctrl.play()
    reloj.avanzar(2.0)
    ctrl.actualizar()
    assert ctrl.get_indice() == 2

    ctrl.load_dataset(crear_dataset(4))

    assert ctrl.get_estado() == EstadoPlayback.STOPPED
    assert ctrl.get_indice() == 0
    assert not ctrl.timer_activo()
    assert [f["time"] for f in ctrl.display.history] == [0]


def test_cargar_archivo_xml_normaliza_canales(ctrl, dataset):
    ctrl.cargar_archivo("datos.xml", to_xml(dataset).encode("utf-8"))

    current = ctrl.display.current
    assert current["bitDepth"] == 6400.0
    assert current["hookLoad"] == dataset.data[0]["hookLoad"]
    assert "bitDepth" in ctrl.get_dataset().data[0]
    assert "DBTM" not in ctrl.get_dataset().data[0]


def test_intervalo_nan_en_el_archivo_no_congela_el_playback(ctrl, reloj):
    puntos = ",".join(
        f'{{"timestamp": "2025-01-01T00:00:0{i}.000Z", "bitDepth": {100 + i}}}' for i in range(3)
    )
    ctrl.cargar_archivo("nan.json", f'{{"metadata": {{"timeIntervalSeconds": NaN}}, "data": [{puntos}]}}')

    ctrl.play()
    assert ctrl.segundos_para_tick() == 1.0

    reloj.avanzar(1000.0)
    assert ctrl.actualizar() == 3
    assert ctrl.get_indice() == 2
    assert ctrl.get_estado() == EstadoPlayback.FINISHED


def test_archivo_invalido_no_toca_el_estado(ctrl, reloj):
    ctrl.load_dataset(crear_dataset(5))
    anterior = ctrl.get_dataset()
    ctrl.play()
    reloj.avanzar(2.0)
    ctrl.actualizar()
    historial = ctrl.display.history

    with pytest.raises(ParseError):
        ctrl.cargar_archivo("data.csv", b"a,b\n1,2\n")

    assert ctrl.get_dataset() is anterior
    assert ctrl.get_indice() == 2
    assert ctrl.get_estado() == EstadoPlayback.PLAYING
    assert ctrl.display.history == historial


# ----------------------------
# Reproduccion
# ----------------------------

def test_recorre_cada_indice_una_vez(ctrl, reloj):
    visitados = []
    ctrl.suscribir(lambda i, punto: visitados.append(i))
    ctrl.load_dataset(crear_dataset(6))

    ctrl.play()
    _reproducir_hasta_el_final(ctrl, reloj)

    assert visitados == [0, 1, 2, 3, 4, 5]
    assert ctrl.get_indice() == 5
    assert ctrl.get_estado() == EstadoPlayback.FINISHED
    assert not ctrl.timer_activo()

    reloj.avanzar(100.0)
    assert ctrl.actualizar() == 0
    assert visitados == [0, 1, 2, 3, 4, 5]


def test_no_hay_tick_antes_del_intervalo(ctrl, reloj):
    ctrl.load_dataset(crear_dataset(5))
    ctrl.play()

    reloj.avanzar(0.5)
    assert ctrl.actualizar() == 0
    reloj.avanzar(0.5)
    assert ctrl.actualizar() == 1
    assert ctrl.get_indice() == 1


def test_ticks_atrasados_se_disparan_juntos(ctrl, reloj):
    ctrl.load_dataset(crear_dataset(10))
    ctrl.play()

    reloj.avanzar(3.0)
    assert ctrl.actualizar() == 3
    assert ctrl.get_indice() == 3


def test_play_dos_veces_no_duplica_el_timer(ctrl, reloj):
    ctrl.load_dataset(crear_dataset(10))
    ctrl.play()
    reloj.avanzar(0.6)
    ctrl.play()

    reloj.avanzar(0.4)
    assert ctrl.actualizar() == 1
    assert ctrl.get_indice() == 1


def test_pausa_cancela_el_tick(ctrl, reloj):
    ctrl.load_dataset(crear_dataset(10))
    ctrl.play()
    reloj.avanzar(1.0)
    ctrl.actualizar()

    ctrl.pause()
    assert ctrl.get_estado() == EstadoPlayback.PAUSED
    assert not ctrl.timer_activo()

    reloj.avanzar(10.0)
    assert ctrl.actualizar() == 0
    assert ctrl.get_indice() == 1

    ctrl.play()
    reloj.avanzar(1.0)
    ctrl.actualizar()
    assert ctrl.get_indice() == 2


def test_play_sin_datos(ctrl):
    with pytest.raises(EmptyDatasetError):
        ctrl.play()
    assert ctrl.get_estado() == EstadoPlayback.STOPPED
    assert not ctrl.timer_activo()


def test_tick_sin_datos(ctrl):
    with pytest.raises(EmptyDatasetError):
        ctrl.tick()


def test_play_desde_finished_reinicia(ctrl, reloj):
    ctrl.load_dataset(crear_dataset(3))
    ctrl.play()
    _reproducir_hasta_el_final(ctrl, reloj)

    ctrl.play()
    assert ctrl.get_estado() == EstadoPlayback.PLAYING
    assert ctrl.get_indice() == 0


def test_dataset_de_un_punto(ctrl, reloj):
    ctrl.load_dataset(crear_dataset(1))
    ctrl.play()
    reloj.avanzar(1.0)
    ctrl.actualizar()
    assert ctrl.get_estado() == EstadoPlayback.FINISHED
    assert ctrl.get_indice() == 0


# ----------------------------
# Reset
# ----------------------------

@pytest.mark.parametrize("accion", ["stopped", "playing", "paused", "finished"])
def test_reset_desde_cualquier_estado(ctrl, reloj, accion):
    emitidos = []
    ctrl.load_dataset(crear_dataset(4))
    ctrl.suscribir(lambda i, punto: emitidos.append(i))

    if accion != "stopped":
        ctrl.play()
        reloj.avanzar(2.0)
        ctrl.actualizar()
    if accion == "paused":
        ctrl.pause()
    if accion == "finished":
        _reproducir_hasta_el_final(ctrl, reloj)

    emitidos.clear()
    ctrl.reset()

    assert ctrl.get_estado() == EstadoPlayback.STOPPED
    assert ctrl.get_indice() == 0
    assert emitidos == [0]
    assert [f["time"] for f in ctrl.display.history] == [0]
    assert ctrl.display.current["bitDepth"] == 100.0
    assert not ctrl.timer_activo()


def test_reset_sin_datos(ctrl):
    ctrl.reset()
    assert ctrl.get_estado() == EstadoPlayback.STOPPED
    assert ctrl.display.history == ()


# ----------------------------
# Velocidad
# ----------------------------

def test_ciclo_de_velocidades(ctrl):
    assert ctrl.get_velocidad() == 1.0
    assert [ctrl.next_speed() for _ in range(5)] == [2.0, 5.0, 10.0, 0.5, 1.0]


def test_velocidad_fuera_del_ciclo(ctrl):
    ctrl.set_speed(3.0)
    assert ctrl.next_speed() == 5.0
    ctrl.set_speed(20.0)
    assert ctrl.next_speed() == 0.5


def test_velocidad_cambia_el_intervalo(ctrl, reloj):
    ctrl.load_dataset(crear_dataset(10))
    ctrl.set_speed(2.0)
    assert ctrl.intervalo_tick_s() == 0.5

    ctrl.play()
    reloj.avanzar(0.5)
    assert ctrl.actualizar() == 1


def test_cambiar_velocidad_reprograma_sin_perder_indice(ctrl, reloj):
    ctrl.load_dataset(crear_dataset(10))
    ctrl.play()
    reloj.avanzar(1.0)
    ctrl.actualizar()
    assert ctrl.get_indice() == 1

    reloj.avanzar(0.1)
    ctrl.set_speed(5.0)
    assert ctrl.get_indice() == 1
    assert ctrl.segundos_para_tick() == pytest.approx(0.1)

    reloj.avanzar(0.1)
    assert ctrl.actualizar() == 1
    assert ctrl.get_indice() == 2


def test_cambiar_velocidad_con_el_intervalo_ya_cumplido(ctrl, reloj):
    ctrl.load_dataset(crear_dataset(10))
    ctrl.play()
    reloj.avanzar(1.0)
    ctrl.actualizar()

    reloj.avanzar(0.5)
    ctrl.set_speed(5.0)
    assert ctrl.segundos_para_tick() == 0.0

    assert ctrl.actualizar() == 1
    assert ctrl.get_indice() == 2
    assert ctrl.segundos_para_tick() == pytest.approx(0.2)


def test_cambios_de_velocidad_seguidos_no_posponen_el_tick(ctrl, reloj):
    ctrl.load_dataset(crear_dataset(10))
    ctrl.play()

    for _ in range(5):
        reloj.avanzar(0.1)
        ctrl.set_speed(1.0)
    assert ctrl.segundos_para_tick() == pytest.approx(0.5)

    reloj.avanzar(0.5)
    assert ctrl.actualizar() == 1
    assert ctrl.get_indice() == 1


@pytest.mark.parametrize("valor", [0, -1, float("nan")])
def test_velocidad_invalida(ctrl, valor):
    with pytest.raises(ValueError):
        ctrl.set_speed(valor)
    assert ctrl.get_velocidad() == 1.0


# ----------------------------
# Historial
# ----------------------------

def test_historial_acotado_a_50(ctrl, reloj, generador):
    ds = generador.generate(SeriesConfig(200, 0, 200, 1), PARAMETROS_DEFAULT)
    ctrl.load_dataset(ds)
    ctrl.play()
    _reproducir_hasta_el_final(ctrl, reloj)

    historial = ctrl.get_historial()
    assert len(historial) == 50
    assert [f["time"] for f in historial] == list(range(150, 200))
    assert historial[-1]["depth"] == ds.data[199]["bitDepth"]


def test_progreso(ctrl, reloj):
    assert ctrl.progreso == 0.0
    ctrl.load_dataset(crear_dataset(4))
    assert ctrl.progreso == 0.25
    ctrl.tick()
    assert ctrl.progreso == 0.5
