from enum import Enum

# =====================================================
# 🌱 CICLOS DE SIEMBRA
# =====================================================
class CycleStatusEnum(str, Enum):
    planificado = "planificado"
    barbecho = "barbecho"
    sembrado = "sembrado"
    listo_para_cosechar = "listo-para-cosechar"
    en_cosecha = "en-cosecha"
    cosechado = "cosechado"


# Estados que cuentan como "ciclo activo" en un campo
ACTIVE_CYCLE_STATUSES = frozenset({
    CycleStatusEnum.barbecho,
    CycleStatusEnum.sembrado,
    CycleStatusEnum.listo_para_cosechar,
    CycleStatusEnum.en_cosecha,
})


# =====================================================
# 🚚 VIAJES DE CAMIÓN
# =====================================================
class TripOriginTypeEnum(str, Enum):
    harvest = "harvest"  # Cosecha directa
    stock = "stock"      # Desde unidad de stock
    unknown = "unknown"  # Sin origen cargado


class TripEventStatusEnum(str, Enum):
    applied = "applied"    # Kgs disponibles en el origen
    kgs_error = "kgsError"  # Se pide más de lo disponible


# =====================================================
# 🔎 FILTROS
# =====================================================
# Valor centinela de filtro inactivo
FILTER_ALL = "all"
