"""HTML rendering for the browser UI.

Every string coming from the user or from Gemini goes through escape()
before it is placed in the page.
"""

from html import escape
from typing import List, Optional

from contrato.models import AttentionPoint, ContractAnalysis, ChatMessage, HistorySummary
from contrato.workspace import ContractWorkspace


ATTENTION_LABELS = {
    "baixo": "Risco Baixo",
    "medio": "Atenção Média",
    "alto": "Atenção Alta",
}

QUICK_QUESTION_COUNT = 4

STYLE = """
* { box-sizing: border-box; }
body { margin: 0; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
       background: #020617; color: #e2e8f0; line-height: 1.6; }
header { display: flex; justify-content: space-between; align-items: center;
         padding: 16px 32px; border-bottom: 1px solid #1e293b; }
header .brand { font-weight: 800; font-size: 20px; }
.layout { display: grid; grid-template-columns: 280px 1fr; min-height: calc(100vh - 70px); }
aside { border-right: 1px solid #1e293b; padding: 24px; }
aside ul { list-style: none; padding: 0; margin: 0; }
aside li { padding: 10px; border-radius: 12px; margin-bottom: 8px; background: #0f172a; }
aside li.active { border: 1px solid #6366f1; }
main { padding: 32px; max-width: 960px; }
section { background: #0f172a; border: 1px solid #1e293b; border-radius: 24px; padding: 28px; margin-bottom: 28px; }
textarea { width: 100%; min-height: 320px; background: #020617; color: #e2e8f0;
           border: 1px solid #1e293b; border-radius: 16px; padding: 16px; }
input[type=text] { width: 100%; padding: 12px; background: #020617; color: #e2e8f0;
                   border: 1px solid #1e293b; border-radius: 12px; }
button { background: #4f46e5; color: #fff; border: 0; border-radius: 12px; padding: 10px 18px; cursor: pointer; }
button:disabled { background: #1e293b; color: #475569; cursor: not-allowed; }
button.link { background: none; color: #94a3b8; padding: 4px 8px; }
.inline { display: inline; }
.error { background: #4c0519; color: #fecdd3; border-radius: 12px; padding: 12px 16px; margin: 16px 0; }
.notice { background: #1e1b4b; color: #c7d2fe; border-radius: 12px; padding: 12px 16px; margin: 16px 0; }
.badge { padding: 4px 12px; border-radius: 999px; font-size: 11px; font-weight: 800;
         text-transform: uppercase; letter-spacing: .08em; border: 1px solid; }
.badge-baixo { color: #34d399; border-color: #065f46; }
.badge-medio { color: #fbbf24; border-color: #78350f; }
.badge-alto { color: #fb7185; border-color: #881337; }
.summary { font-style: italic; font-size: 20px; border-left: 2px solid #4f46e5; padding-left: 20px; }
.excerpt { background: #020617; border-radius: 12px; padding: 12px 16px; font-family: Georgia, serif; }
.messages { max-height: 520px; overflow-y: auto; }
.message { padding: 12px 16px; border-radius: 16px; margin: 8px 0; max-width: 85%; }
.message-user { background: #4f46e5; margin-left: auto; }
.message-model { background: #1e293b; }
.actions li { background: rgba(255, 255, 255, .06); padding: 10px 14px; border-radius: 12px; margin-bottom: 8px; }
footer { color: #64748b; font-size: 12px; padding: 24px 32px; }
"""

COPY_SCRIPT = """
function copyExcerpt(button) {
  navigator.clipboard.writeText(button.dataset.excerpt).then(function () {
    var label = button.textContent;
    button.textContent = 'Copiado!';
    setTimeout(function () { button.textContent = label; }, 2000);
  });
}
"""


def attention_badge(level: str) -> str:
    """Render the colored badge for an attention level."""
    label = ATTENTION_LABELS.get(level, level)
    return f'<span class="badge badge-{escape(level)}">{escape(label)}</span>'


def _disabled(flag: bool) -> str:
    return " disabled" if flag else ""


def render_history_sidebar(summaries: List[HistorySummary], active_id: Optional[str]) -> str:
    if not summaries:
        items = '<p class="empty">Nenhuma análise salva ainda.</p>'
    else:
        rows = []
        for summary in summaries:
            css = ' class="active"' if summary.id == active_id else ""
            created = summary.created_at.astimezone().strftime("%d/%m/%Y %H:%M")
            rows.append(
                f'<li{css}>'
                f'<strong>{escape(summary.contract_type)}</strong><br>'
                f'<small>{created} · {summary.message_count} mensagens</small><br>'
                f'<form class="inline" method="post" action="/history/{escape(summary.id)}/load">'
                f'<button class="link" type="submit">Abrir</button></form>'
                f'<form class="inline" method="post" action="/history/{escape(summary.id)}/delete">'
                f'<button class="link" type="submit">Excluir</button></form>'
                f'</li>'
            )
        items = "<ul>" + "".join(rows) + "</ul>"
        items += (
            '<form method="post" action="/history/clear">'
            '<button class="link" type="submit">Limpar histórico</button></form>'
        )
    return f'<aside><h3>Histórico</h3>{items}</aside>'


def render_input_screen(workspace: ContractWorkspace) -> str:
    busy = workspace.is_loading or workspace.is_processing_file
    error = f'<div class="error">{escape(workspace.error)}</div>' if workspace.error else ""
    loading = ""
    if workspace.is_loading:
        loading = '<div class="notice">Processando com IA...</div>'
    elif workspace.is_processing_file:
        loading = '<div class="notice">Extraindo...</div>'

    return f"""
<section>
  <h1>Entenda seu contrato</h1>
  <p>Nossa IA analisa juridiquês e traduz tudo para você.</p>
  <form method="post" action="/contract/upload" enctype="multipart/form-data">
    <input type="file" name="file" accept=".pdf,.docx,.txt"{_disabled(busy)}>
    <button type="submit"{_disabled(busy)}>Importar Arquivo</button>
  </form>
  {loading}
  <form method="post" action="/contract/analyze">
    <textarea name="contract_text" placeholder="Cole aqui o texto do contrato ou importe um arquivo acima..."{_disabled(workspace.is_loading)}>{escape(workspace.contract_text)}</textarea>
    {error}
    <button type="submit"{_disabled(busy)}>Iniciar Análise</button>
  </form>
</section>
"""


def _render_attention_point(point: AttentionPoint) -> str:
    return f"""
<div class="point">
  <h4>{escape(point.title)} {attention_badge(point.attention_level)}</h4>
  <p><small>Cláusula Original</small>
    <button class="link" type="button" title="Copiar trecho"
            data-excerpt="{escape(point.contract_excerpt)}" onclick="copyExcerpt(this)">Copiar</button></p>
  <p class="excerpt">"{escape(point.contract_excerpt)}"</p>
  <p><small>O que isso significa?</small><br>{escape(point.why_it_matters)}</p>
</div>
"""


def _render_message(message: ChatMessage) -> str:
    return f'<div class="message message-{message.role}">{escape(message.text)}</div>'


def render_chat_panel(workspace: ContractWorkspace) -> str:
    analysis = workspace.analysis
    pending = workspace.is_chat_loading

    quick = "".join(
        f'<form class="inline" method="post" action="/chat/point">'
        f'<input type="hidden" name="point" value="{escape(point)}">'
        f'<button class="link" type="submit"{_disabled(pending)}>{idx}. {escape(point)}</button></form>'
        for idx, point in enumerate(analysis.main_points[:QUICK_QUESTION_COUNT], start=1)
    )

    if workspace.messages:
        transcript = "".join(_render_message(message) for message in workspace.messages)
    else:
        transcript = (
            '<p><strong>Inicie uma conversa</strong><br>'
            'Pergunte sobre multas, prazos, rescisão ou qualquer cláusula que não ficou clara.</p>'
        )
    if pending:
        transcript += '<div class="message message-model">...</div>'

    return f"""
<section id="chat">
  <h3>Consultor de Contratos</h3>
  <div class="quick"><small>Principais Dúvidas</small><br>{quick}</div>
  <div class="messages">{transcript}</div>
  <form method="post" action="/chat/send">
    <input type="text" name="message" placeholder="Ex: Como funciona a multa por atraso?"{_disabled(pending)}>
    <button type="submit"{_disabled(pending)}>Enviar</button>
  </form>
</section>
"""


def render_report(workspace: ContractWorkspace) -> str:
    analysis: ContractAnalysis = workspace.analysis
    main_points = "".join(
        f'<li><small>Insight {idx}</small><br>{escape(point)}</li>'
        for idx, point in enumerate(analysis.main_points, start=1)
    )
    attention_points = "".join(_render_attention_point(point) for point in analysis.attention_points)
    actions = "".join(f"<li>{escape(action)}</li>" for action in analysis.pre_signing_actions)

    return f"""
<section>
  <small>Contrato Identificado</small>
  <h1>{escape(analysis.contract_type)}</h1>
  <p>Nível Geral: {attention_badge(analysis.overall_attention_level)}</p>
  <p class="summary">"{escape(analysis.quick_summary)}"</p>
</section>
<section>
  <h3>Principais Pontos</h3>
  <ul>{main_points}</ul>
</section>
<section>
  <h3>Pontos Críticos</h3>
  {attention_points}
</section>
<section class="actions">
  <h3>Recomendações Finais</h3>
  <ul>{actions}</ul>
</section>
{render_chat_panel(workspace)}
<section>
  <p><strong>Isenção de responsabilidade:</strong> {escape(analysis.important_notice)}</p>
  <form method="post" action="/reset"><button type="submit">Analisar Novo Documento</button></form>
</section>
"""


def render_page(workspace: ContractWorkspace) -> str:
    """Render the whole page for the current workspace state."""
    if workspace.analysis is None:
        content = render_input_screen(workspace)
    else:
        content = render_report(workspace)

    sidebar = render_history_sidebar(workspace.history.list_summaries(), workspace.active_id)

    return f"""<!doctype html>
<html lang="pt-BR">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Contrato Fácil</title>
  <style>{STYLE}</style>
  <script>{COPY_SCRIPT}</script>
</head>
<body>
  <header>
    <span class="brand">Contrato Fácil</span>
    <form method="post" action="/reset"><button class="link" type="submit">Início</button></form>
  </header>
  <div class="layout">
    {sidebar}
    <main>{content}</main>
  </div>
  <footer>Análise via IA generativa. Não substitui a orientação de um advogado.</footer>
</body>
</html>
"""
