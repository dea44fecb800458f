"""
Plantillas de documentos legales generados con IA (Ley 1/2015, TRLC).

Cada plantilla es un prompt con marcadores `{clave}`. Los valores llegan en
`datos`; un valor vacío se sustituye por "No especificado" y los marcadores
sin dato se dejan tal cual para que el modelo los trate como hueco.
"""
from dataclasses import dataclass
from typing import Any, Mapping, Optional

VALOR_NO_ESPECIFICADO = "No especificado"

SYSTEM_PROMPT_DOCUMENTOS = (
    "Eres un abogado experto en la Ley de Segunda Oportunidad española (Ley 1/2015, TRLC).\n"
    "Generas documentos legales formales, precisos y profesionalmente estructurados.\n"
    "Usas terminología jurídica correcta y haces referencia a la normativa aplicable "
    "cuando corresponde."
)

SYSTEM_PROMPT_INVESTIGACION = (
    "Eres un asistente legal experto en la Ley de Segunda Oportunidad española y derecho "
    "concursal.\n"
    "Proporcionas respuestas detalladas con referencias a legislación aplicable "
    "(Ley 1/2015, TRLC, etc.).\n"
    "Cuando sea relevante, citas artículos de ley, jurisprudencia y normativas."
)


@dataclass(frozen=True)
class PlantillaDocumento:
    id: str
    nombre: str
    prompt: str

    def render(self, datos: Optional[Mapping[str, Any]] = None) -> str:
        texto = self.prompt
        for clave, valor in (datos or {}).items():
            if valor is None or valor == "":
                valor = VALOR_NO_ESPECIFICADO
            texto = texto.replace("{" + str(clave) + "}", str(valor))
        return texto


_SOLICITUD_BENEFICIO = """Genera un documento formal de SOLICITUD DE BENEFICIO DE EXONERACIÓN DEL PASIVO INSATISFECHO
al amparo de la Ley 1/2015, de mecanismo de segunda oportunidad.

DATOS DEL SOLICITANTE:
- Nombre completo: {nombre}
- DNI/NIE: {dni}
- Dirección: {direccion}
- Localidad: {localidad}
- Código Postal: {cp}
- Teléfono: {telefono}
- Email: {email}

DATOS ECONÓMICOS:
- Deuda total: {deuda_total}€
- Número de acreedores: {num_acreedores}
- Ingresos mensuales: {ingresos}€
- Patrimonio: {patrimonio}€

ACREEDORES:
{acreedores}

El documento debe incluir:
1. Encabezado con datos del Juzgado de lo Mercantil competente
2. Identificación completa del solicitante
3. Antecedentes y exposición de hechos que motivan la situación de insolvencia
4. Relación de acreedores y deudas
5. Relación de bienes y derechos
6. Manifestación de haber actuado de buena fe (art. 487 TRLC)
7. Solicitud de concesión del beneficio de exoneración
8. Documentación que se adjunta
9. Lugar, fecha y firma
10. Otrosí de solicitud de nombramiento de mediador concursal si procede

Formato: Documento legal formal en español con estructura profesional de abogado."""

_INVENTARIO_BIENES = """Genera un INVENTARIO DE BIENES Y DERECHOS formal para procedimiento de Ley de Segunda Oportunidad.

DATOS DEL DEUDOR:
- Nombre completo: {nombre}
- DNI/NIE: {dni}
- Dirección: {direccion}

El documento debe incluir las siguientes secciones claramente diferenciadas:

1. BIENES INMUEBLES (descripción, valor catastral y de mercado, cargas)
2. BIENES MUEBLES DE VALOR (vehículos, joyas, equipos, otros)
3. CUENTAS BANCARIAS Y ACTIVOS FINANCIEROS
4. DERECHOS DE CRÉDITO
5. OTROS ACTIVOS
6. RESUMEN Y VALORACIÓN TOTAL

Formato: Tabla estructurada con columnas: Descripción, Valor Estimado, Observaciones/Cargas."""

_PROPUESTA_PAGO = """Genera una PROPUESTA DE PLAN DE PAGOS para acuerdo extrajudicial de pagos en el marco de la Ley de Segunda Oportunidad.

DATOS:
- Deudor: {nombre}
- DNI/NIE: {dni}
- Deuda total: {deuda_total}€
- Capacidad de pago mensual: {pago_mensual}€
- Plazo propuesto: {plazo} meses
- Ingresos netos mensuales: {ingresos}€
- Gastos mensuales básicos: {gastos}€

LISTA DE ACREEDORES:
{acreedores}

El documento debe incluir:
1. Identificación del deudor y situación patrimonial actual
2. Descripción de la situación de insolvencia
3. Propuesta de plan de pagos (cuantía por acreedor, plazos, quitas)
4. Cronograma de pagos detallado
5. Compromisos del deudor durante el plan
6. Manifestación de buena fe
7. Solicitud de aprobación

Formato: Documento formal con estructura clara y profesional."""

_DECLARACION_BUENA_FE = """Genera una DECLARACIÓN JURADA DE BUENA FE para procedimiento de Ley de Segunda Oportunidad.

DATOS DEL SOLICITANTE:
- Nombre completo: {nombre}
- DNI/NIE: {dni}
- Dirección: {direccion}

La declaración debe incluir manifestaciones formales sobre:
1. No haber sido condenado en sentencia firme por delitos contra el patrimonio, contra el orden socioeconómico, de falsedad documental, contra la Hacienda Pública o la Seguridad Social en los últimos 10 años
2. No haber obtenido el beneficio de exoneración en los últimos 5 años
3. Haber celebrado acuerdos de refinanciación o obtenido nombramiento de mediador concursal
4. No haber ocultado bienes ni documentación relevante
5. Colaboración con el mediador concursal
6. Aceptación de las consecuencias del beneficio de exoneración

Formato: Documento legal formal con estructura de declaración jurada."""

_CARTA_ACREEDOR = """Genera una CARTA FORMAL DIRIGIDA A UN ACREEDOR informando de la situación de insolvencia y el inicio del procedimiento de segunda oportunidad.

DATOS:
- Remitente: {nombre}
- DNI/NIE: {dni}
- Dirección: {direccion}
- Acreedor: {nombre_acreedor}
- Dirección del acreedor: {direccion_acreedor}
- Cantidad adeudada: {cantidad}€
- Referencia/Número de cuenta: {referencia}

La carta debe incluir:
1. Encabezado formal
2. Identificación del deudor
3. Información sobre la situación de insolvencia
4. Comunicación del inicio del procedimiento de segunda oportunidad
5. Solicitud de suspensión de intereses y acciones de cobro
6. Datos del mediador concursal (si lo hay)
7. Información de contacto para consultas
8. Despedida formal

Tono: Formal, respetuoso y profesional."""


PLANTILLAS: dict[str, PlantillaDocumento] = {
    p.id: p
    for p in (
        PlantillaDocumento("solicitud_beneficio", "Solicitud de Beneficio de Exoneración", _SOLICITUD_BENEFICIO),
        PlantillaDocumento("inventario_bienes", "Inventario de Bienes y Derechos", _INVENTARIO_BIENES),
        PlantillaDocumento("propuesta_pago", "Propuesta de Plan de Pagos", _PROPUESTA_PAGO),
        PlantillaDocumento("declaracion_buena_fe", "Declaración de Buena Fe", _DECLARACION_BUENA_FE),
        PlantillaDocumento("carta_acreedor", "Carta a Acreedor", _CARTA_ACREEDOR),
    )
}


def get_plantilla(tipo: Optional[str]) -> Optional[PlantillaDocumento]:
    if not tipo:
        return None
    return PLANTILLAS.get(tipo)


def list_plantillas() -> list[dict]:
    return [{"id": p.id, "nombre": p.nombre} for p in PLANTILLAS.values()]
