from datetime import time

import pytest

from sunflow.services.agendamento import horarios_sobrepoem, minutos_entre


@pytest.mark.parametrize("inicio, fim, outro_inicio, outro_fim, esperado", [
    (time(9), time(11), time(10), time(12), True),
    (time(10), time(12), time(9), time(11), True),
    (time(8), time(12), time(9), time(10), True),
    (time(9, 30), time(10), time(9), time(11), True),
    (time(9), time(11), time(9), time(11), True),
    (time(11), time(12), time(9), time(11), False),
    (time(8), time(9), time(9), time(11), False),
    (time(13), time(14), time(9), time(11), False),
])
def test_horarios_sobrepoem(inicio, fim, outro_inicio, outro_fim, esperado):
    assert horarios_sobrepoem(inicio, fim, outro_inicio, outro_fim) is esperado


def test_minutos_entre():
    assert minutos_entre(time(8), time(10, 30)) == 150
    assert minutos_entre(time(14, 15), time(14, 45)) == 30
