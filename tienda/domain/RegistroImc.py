"""RegistroImc domain entity: one saved IMC calculation of the shared history."""
from datetime import datetime
from typing import Any, Dict, Optional

from tienda.logic.imc.classification import band_color, imc_with_band


class RegistroImc:
    def __init__(self, nombre: str, peso: float, altura: float, imc: float,
                 clasificacion: str, fecha: str, id: Optional[str] = None):
        self.id = id
        self.nombre = nombre
        self.peso = peso
        self.altura = altura  # cm
        self.imc = imc
        self.clasificacion = clasificacion
        self.fecha = fecha

    @classmethod
    def calcular(cls, nombre: str, peso: float, altura: float,
                 now: Optional[datetime] = None) -> "RegistroImc":
        '''Compute the IMC for a weight (kg) and height (cm) and stamp it with the current time.'''
        imc, clasificacion = imc_with_band(peso, altura)
        fecha = (now or datetime.now()).isoformat(timespec="seconds")
        return cls(nombre=nombre, peso=peso, altura=altura, imc=imc,
                   clasificacion=clasificacion, fecha=fecha)

    @property
    def color(self) -> str:
        return band_color(self.clasificacion)

    def __str__(self) -> str:
        return f"{self.nombre} - IMC: {self.imc} → {self.clasificacion} ({self.fecha})"

    __repr__ = __str__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nombre": self.nombre,
            "peso": self.peso,
            "altura": self.altura,
            "imc": self.imc,
            "clasificacion": self.clasificacion,
            "fecha": self.fecha,
        }
