"""
User-facing texts.

Messages are WhatsApp-formatted Spanish (``*bold*``). Everything that
depends on configuration takes it as an argument.
"""

from datetime import datetime

from .catalog import CatalogStats
from .config import CompanyConfig, HoursConfig
from .models import InvalidEntry, Product, RateSnapshot
from .tokens import REASON_NOT_A_CODE, REASON_UNKNOWN_CODE

SEPARATOR = "---------------------------------------"

INVALID_REASONS = {
    REASON_NOT_A_CODE: "no es un código válido",
    REASON_UNKNOWN_CODE: "código de producto no válido",
}


def describe_invalid(entry: InvalidEntry) -> str:
    if entry.reason.startswith("invalid quantity: "):
        bad = entry.reason.removeprefix("invalid quantity: ")
        return f'"{entry.token}" (cantidad inválida: "{bad}")'
    return f'"{entry.token}" ({INVALID_REASONS.get(entry.reason, entry.reason)})'


def bullet_list(lines: list[str]) -> str:
    return "• " + "\n• ".join(lines)


# -----------------------------------------------------------------------------
# General
# -----------------------------------------------------------------------------


def welcome(catalog_version: str) -> str:
    return f"""¡Hola 👋!

Bienvenido al servicio automatizado de consulta de precios.

Actualmente trabajo con el *Catálogo de precios v{catalog_version}*
Asegúrate de tener el catálogo a mano para poder ayudarte.

Para consulta de precios usa el siguiente comando:
*/precio código* - Consulta del precio de un producto específico

*Ejemplo:*
/precio 11050

Escribe */precio* sin ningún código y obtendrás más información sobre este comando.

Puedes escribir /ayuda para ver todas las opciones disponibles."""


GOODBYE = """¡De nada! 😊

Fue un placer ayudarte. Si tienes más preguntas, no dudes en contactarnos.

¡Que tengas un excelente día!"""

NOT_UNDERSTOOD = "🤔 No he entendido tu mensaje."

UNKNOWN_COMMAND = "❌ *Comando no reconocido*."

HELP = """🤖 *Bot de Atención al Cliente*

*Comandos generales:*
*/ayuda* - Muestra este menú
*/info* - Información de contacto
*/horarios* - Horarios de atención
*/bcv* - Muestra la tasa de cambio del BCV

*Comandos de productos:*
*/precio [código]* - Información y cotización de producto(s)

*/buscar [término]* - Buscar productos específicos según un término

*Ejemplos:*
• /buscar breaker
• /precio 11050"""


def hours(h: HoursConfig) -> str:
    return f"""🕒 *Horarios de Atención*

*Lunes a Viernes:* {h.weekdays}
*Sábados:* {h.saturdays}
*Domingos:* {h.sundays}"""


def info(company: CompanyConfig, h: HoursConfig) -> str:
    return f"""📞 *Información de Contacto*

🏢 *Empresa:* {company.name}

📧 *Email:* {company.email}

🌐 *Web:* {company.web}

📍 *Dirección:* {company.address}

*Horarios de atención:*
*Lunes a Viernes:* {h.weekdays}
*Sábados:* {h.saturdays}
*Domingos:* {h.sundays}"""


# -----------------------------------------------------------------------------
# Catalog
# -----------------------------------------------------------------------------


def products(stats: CatalogStats, catalog_version: str) -> str:
    return f"""🛍️ *Catálogo de Productos* *v{catalog_version}*

📊 *Estadísticas:*
• Total de productos: {stats.count}
• Categorías disponibles: {stats.category_count}

*Comandos útiles:*
/buscar *término* - Buscar productos específicos según un término

/precio *código* - Ver producto por código"""


def categories(names: list[str]) -> str:
    if not names:
        return """📂 *Categorías de Productos*

No hay categorías disponibles en este momento.

Usa /productos para ver más información."""
    lines = [f"{i}. *{name}*" for i, name in enumerate(names, start=1)]
    return (
        "📂 *Categorías de Productos*\n\n"
        + "\n".join(lines)
        + "\n\n*Para ver productos de una categoría:*\n/buscar *Nombre de Categoría*"
        + "\n\n*Ejemplo:* /buscar protectores"
    )


SEARCH_USAGE = """🔍 *Búsqueda de Productos*

Para buscar productos, escribe:
/buscar *término de búsqueda*

*Ejemplos:*
/buscar breaker
/buscar protector
/buscar wifi"""


def search_empty(term: str) -> str:
    return f"""🔍 *Búsqueda: "{term}"*

No se encontraron productos que coincidan con tu búsqueda.

*Sugerencias:*
• Verifica la ortografía
• Usa términos más generales
• Usa /categorias para ver las categorías de los productos disponibles"""


def search_results(term: str, results: list[tuple[Product, str]], total: int) -> str:
    parts = [f'🔍 *Búsqueda: "{term}"*\n', f"*Encontrados {total} producto(s):*\n"]
    for i, (product, price) in enumerate(results, start=1):
        parts.append(f"{i}. *{product.code}* - {product.description}\n💰 {price}\n")
    if total > len(results):
        parts.append(f"... y {total - len(results)} producto(s) más.\n")
    parts.append("*Para ver detalles completos:*\n/precio [código del producto]")
    return "\n".join(parts)


def product_not_found(code: str) -> str:
    return f'❌ Producto con código "{code}" no encontrado.'


# -----------------------------------------------------------------------------
# Quotations
# -----------------------------------------------------------------------------


def quote_usage(command: str, title: str = "🔍 *Consulta de Precios*") -> str:
    return f"""{title}

Para consultar el precio de un producto específico, escribe:
/{command} *Código Producto*

*Ejemplo:* /{command} *11050*

Para cotizaciones rápidas, escribe:
/{command} *CódigoProducto1, cantidad, CódigoProductoN, cantidad*

*Ejemplo:* /{command} *11050, 1, 10000, 3, 10050, 2*

También puedes hacer la misma consulta de la siguiente manera:
/{command} *CódigoProducto1 cantidad CódigoProductoN cantidad*

*Ejemplo:* /{command} *11050 1 10000 3 10050 2*

*Para enviar la cotización a un vendedor:*
Después de hacer tu cotización, usa el comando:
/enviar *Nombre del Vendedor*

*NOTAS:*
Se permiten máximo 20 productos para la cotización rápida.
Si no se indica la cantidad, se asume que es 1."""


def quote_error(invalid: list[InvalidEntry], command: str) -> str:
    described = [describe_invalid(e) for e in invalid]
    return f"""❌ *Error en la Cotización*

No se encontraron productos válidos en tu solicitud. Por favor, verifica los códigos o cantidades ingresados.

*Argumentos con formato inválido:*
{bullet_list(described)}

*Aquí tienes ayuda sobre cómo usar el comando:*

Después del comando */{command}* solo debe ingresar códigos válidos, seguido de la cantidad de ese producto.

*/{command} [código]* - Para ver información y cotizar uno o más productos.
*Ejemplo:*
*/{command}* 11050 3

*/buscar [término de búsqueda]* - Para encontrar productos por su nombre o descripción.
*Ejemplo:*
*/buscar* breaker"""


def too_many_items(count: int, limit: int, command: str) -> str:
    return f"""❌ *Error en la Cotización*

Tu solicitud tiene {count} productos. Se permiten máximo {limit} productos por cotización.

Divide tu solicitud en varias cotizaciones con */{command}*."""


def no_products(title: str) -> str:
    return f"{title}\n\nNo se especificaron productos."


RAW_DENIED = "❌ *Acceso Denegado*\n\nEl comando /divisas NO está disponible para usted."


def pricing_info(tier_label: str) -> str:
    return f"""💰 *Información de Precios*

*Tu tipo de cliente actual es:* {tier_label.upper()}

*Para consultar precios específicos:*
/precio *código* - Ver precio de producto específico

/buscar *término* - Buscar productos específicos según un término y sus precios"""


# -----------------------------------------------------------------------------
# Tier approval
# -----------------------------------------------------------------------------

NO_AGENTS = "❌ No hay vendedores configurados para aprobar tu solicitud. Por favor, contacta a soporte."

UNAUTHORIZED = "❌ Este comando solo puede ser usado por vendedores autorizados."

APPROVE_USAGE = "Formato incorrecto. Usa: /aprobar <numero_cliente> <tipo_cliente>"

REJECT_USAGE = "Formato incorrecto. Usa: /rechazar <numero_cliente>"

CLIENT_REJECTED = (
    "Lo sentimos, tu solicitud de cambio de tipo de cliente ha sido rechazada. "
    "Por favor, contacta a un vendedor para más información."
)


def unknown_tier(value: str) -> str:
    return f'❌ Tipo de cliente "{value}" no reconocido.'


def tier_change_request(client_name: str, client_id: str, tier_label: str) -> str:
    return f"""*Solicitud de Cambio de Tipo de Cliente*

*Cliente:* {client_name}
*Número:* {client_id}
*Tipo Solicitado:* {tier_label.upper()}"""


def request_sent(tier_label: str) -> str:
    return f"""✅ *Solicitud Enviada*

Tu solicitud para cambiar a tipo de cliente *{tier_label.upper()}* ha sido enviada a nuestros vendedores para su aprobación.

Te notificaremos tan pronto como sea procesada."""


def no_pending_request(client_id: str) -> str:
    return f"⚠️ No hay una solicitud pendiente para el cliente {client_id}, o ya fue procesada."


def client_approved(tier_label: str) -> str:
    return f"🎉 ¡Tu solicitud ha sido aprobada! 🎉\n\nAhora tienes acceso a los precios de *{tier_label.upper()}*."


def approve_ack(client_id: str, tier_label: str) -> str:
    return f"✅ Solicitud del cliente {client_id} aprobada. Se le ha asignado el tipo *{tier_label.upper()}*."


def reject_ack(client_id: str) -> str:
    return f"🚫 Solicitud del cliente {client_id} ha sido rechazada y notificada."


# -----------------------------------------------------------------------------
# Send to agent
# -----------------------------------------------------------------------------


def send_usage(agent_names: list[str]) -> str:
    available = ", ".join(agent_names) or "Ninguno configurado"
    return (
        "Para enviar tu última cotización a un vendedor, escribe:\n"
        "/enviar *Nombre del Vendedor*\n\n"
        f"Vendedores disponibles: {available}"
    )


def agent_not_found(name: str) -> str:
    return f'❌ Vendedor "{name}" no encontrado.'


NO_LAST_QUOTE = (
    "📝 No tienes una cotización reciente para enviar. "
    "Por favor, genera una cotización primero con el comando /precio."
)

SEND_FAILED = (
    "❌ Ocurrió un error al intentar enviar la cotización. Por favor, intenta de nuevo "
    "más tarde o contacta directamente al vendedor."
)


def quote_for_agent(client_name: str, client_id: str, tier_label: str, quote: str) -> str:
    return f"""*Nueva Cotización Solicitada*

*Cliente:* {client_name}
*Número:* {client_id}
*Tipo de Cliente:* {tier_label.upper()}

{SEPARATOR}
{quote}"""


def quote_sent(agent_name: str) -> str:
    return f"✅ ¡Éxito! Tu cotización ha sido enviada a *{agent_name}*. Pronto se pondrá en contacto contigo."


# -----------------------------------------------------------------------------
# Photos
# -----------------------------------------------------------------------------

PHOTO_USAGE = "📷 Para solicitar la foto de un producto, escribe:\n/foto *Código del Producto*\n\n*Ejemplo:* /foto 11050"

PHOTO_FAILED = "❌ Ocurrió un error al intentar enviar la imagen. Por favor, contacta directamente al vendedor."


def no_image(product: Product) -> str:
    return (
        f"🖼️ Lo sentimos, no se encontró una imagen para el producto "
        f"*{product.description}* (Código: {product.code})."
    )


def photo_caption(product: Product) -> str:
    return f"📷 *{product.description}*\n*Código:* {product.code}"


# -----------------------------------------------------------------------------
# Rates and stats
# -----------------------------------------------------------------------------


def rates(snapshot: RateSnapshot) -> str:
    lines = ["🏦 *Tasa de Cambio del BCV*", ""]
    lines.append(
        f"💵 *Dólar:* {snapshot.dollar:.2f} Bs." if snapshot.has_dollar else "💵 *Dólar:* No disponible"
    )
    lines.append(
        f"💶 *Euro:* {snapshot.euro:.2f} Bs." if snapshot.has_euro else "💶 *Euro:* No disponible"
    )
    if snapshot.last_updated:
        lines.append("")
        lines.append(f"*Actualizado:* {snapshot.last_updated.strftime('%d/%m/%Y %I:%M:%S %p')}")
    lines.append("")
    lines.append("Fuente: Banco Central de Venezuela (BCV)")
    return "\n".join(lines)


def stats(
    catalog_stats: CatalogStats,
    total_quotes: int,
    list_quotes: int,
    raw_quotes: int,
    history_size: int,
    multiplier: float,
    command_count: int,
) -> str:
    last_load = _format_dt(catalog_stats.last_load_time)
    state = "Actualizado" if catalog_stats.last_load_time else "No disponible"
    return f"""📊 *Estadísticas del Sistema*

*Productos:*
• Total de productos: {catalog_stats.count}
• Categorías disponibles: {catalog_stats.category_count}
*Cotizaciones:*
• Total de cotizaciones: {total_quotes}
  - Vía /precio: {list_quotes}
  - Vía /divisas: {raw_quotes}
• Registros en historial: {history_size}

*Configuración:*
• Multiplicador de precios: {multiplier}x
• Última actualización: {last_load}

*Archivo de productos:*
• Ruta: {catalog_stats.source or 'N/A'}
• Estado: {state}

*Comandos registrados:* {command_count}"""


def _format_dt(value: datetime | None) -> str:
    return value.strftime("%d/%m/%Y %H:%M") if value else "N/A"


# -----------------------------------------------------------------------------
# Keyword auto-responses for non-command text
# -----------------------------------------------------------------------------

KEYWORDS = {
    "greeting": ["hola", "holis", "buenos días", "buenas tardes", "buenas noches", "hi", "hello"],
    "goodbye": ["gracias", "chau", "adiós", "adios", "hasta luego", "bye", "goodbye"],
    "prices": ["precio", "costo", "cuánto cuesta", "valor", "tarifa", "tarifas", "precios"],
    "products": ["producto", "servicio", "qué ofrecen", "catalogo", "inventario"],
    "hours": ["horario", "cuándo", "cuando", "disponible", "abierto", "cerrado"],
    "problems": [
        "problema", "error", "no funciona", "no sirve", "queja",
        "reclamo", "falla", "fallas", "soporte", "problemas",
    ],
    "search": ["buscar", "encontrar", "tengo", "necesito", "requiero", "quiero"],
}

PRICES_HINT = """💰 *Información de Precios*

Para obtener información detallada sobre precios, puedes:

• Escribir */precio* para ver información general

• Usar */precio [Código del Producto]* para consultar un producto por código

• Usar */buscar [término]* - Buscar productos específicos según un término"""

PRODUCTS_HINT = """🛍️ *Nuestros Productos*

Escribe */productos* para ver información completa del catálogo.

También puedes:
/buscar *[término]* - Buscar productos específicos

/precio *[código]* - Consultar producto por código"""

PROBLEMS_HINT = """🛠️ *Soporte Técnico*

Lamento escuchar que tienes un problema. Para ayudarte mejor:

1️⃣ Describe el problema detalladamente
2️⃣ Menciona cuándo comenzó
3️⃣ Si es posible, envía capturas de pantalla y algún video.

Escribe a tu vendedor para más información."""

SEARCH_HINT = """🔍 *Búsqueda de Productos*

Para buscar productos específicos, puedes usar:

/buscar [término] - Buscar por nombre o descripción

/productos - Ver información del catálogo

/precio *[código]* - Consultar producto por código

*Ejemplo:* /buscar breaker 2x20A"""


def hours_hint(h: HoursConfig) -> str:
    return f"""🕒 *Horarios de Atención*

Escribe /horarios para ver nuestros horarios completos.

*Respuesta rápida:*
{h.weekdays} (Lunes a Viernes)
{h.saturdays} (Sábados)
{h.sundays} (Domingos)"""


def auto_response(text: str, catalog_version: str, h: HoursConfig) -> str | None:
    """Canned reply for free text, checked in keyword-group order."""
    lowered = text.lower()

    def matches(group: str) -> bool:
        return any(keyword in lowered for keyword in KEYWORDS[group])

    if matches("greeting"):
        return welcome(catalog_version)
    if matches("goodbye"):
        return GOODBYE
    if matches("prices"):
        return PRICES_HINT
    if matches("products"):
        return PRODUCTS_HINT
    if matches("hours"):
        return hours_hint(h)
    if matches("problems"):
        return PROBLEMS_HINT
    if matches("search"):
        return SEARCH_HINT
    return None
