"""
Geração dos PDFs da ordem de serviço e do RME (reportlab/platypus).
"""
import io
import logging
from datetime import datetime
from typing import Any, List, Optional
from xml.sax.saxutils import escape

from reportlab.graphics.barcode.qr import QrCodeWidget
from reportlab.graphics.shapes import Drawing
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from sunflow.core.config import settings
from sunflow.core.datas import agora_utc, garantir_utc, LOCAL_TZ
from sunflow.models.ordem_servico import OrdemServico
from sunflow.models.rme_relatorio import RMERelatorio
from .rme_checklist import ROTULOS_CATEGORIA, agrupar_por_categoria

logger = logging.getLogger(__name__)

COR_MARCA = colors.HexColor("#f59e0b")
COR_TEXTO = colors.HexColor("#1e293b")
COR_FUNDO = colors.HexColor("#f1f5f9")

ROTULOS_PRIORIDADE = {"baixa": "Baixa", "media": "Média", "alta": "Alta", "critica": "Crítica"}
ROTULOS_TURNO = {"manha": "Manhã (06:00 - 12:00)", "tarde": "Tarde (12:00 - 18:00)", "noite": "Noite (18:00 - 06:00)"}
ROTULOS_TIPO_SERVICO = {"limpeza": "Limpeza", "eletrica": "Elétrica", "internet": "Internet", "outros": "Outros"}
ROTULOS_ASSINATURA = [
    ("responsavel", "Responsável técnico"),
    ("gerente_manutencao", "Gerente de manutenção"),
    ("gerente_projeto", "Gerente de projeto"),
]


def _txt(valor: Any, padrao: str = "-") -> str:
    if valor is None or valor == "":
        return padrao
    return escape(str(valor))


def _data(valor) -> str:
    return valor.strftime("%d/%m/%Y") if valor else "-"


def _data_hora(valor) -> str:
    if not valor:
        return "-"
    return garantir_utc(valor).astimezone(LOCAL_TZ).strftime("%d/%m/%Y %H:%M")


def _intervalo(inicio, fim) -> Optional[str]:
    if not inicio and not fim:
        return None
    return f"{inicio.strftime('%H:%M') if inicio else '--:--'} às {fim.strftime('%H:%M') if fim else '--:--'}"


def _assinado_em(assinatura: Optional[dict]) -> Optional[str]:
    if not assinatura or not assinatura.get("at"):
        return None
    try:
        return _data_hora(datetime.fromisoformat(str(assinatura["at"]).replace("Z", "+00:00")))
    except ValueError:
        return str(assinatura["at"])


def nome_arquivo_os(os: OrdemServico) -> str:
    return f"OS_{os.numero_os}_{agora_utc().strftime('%Y%m%d%H%M%S')}.pdf"


def nome_arquivo_rme(rme: RMERelatorio) -> str:
    numero = rme.ordem_servico.numero_os if rme.ordem_servico else str(rme.id)[:8]
    return f"RME_{numero}_{agora_utc().strftime('%Y%m%d%H%M%S')}.pdf"


class _DocumentoPDF:
    """Estilos e blocos comuns aos dois documentos."""

    margem = 1.8 * cm

    def __init__(self, titulo: str):
        self.titulo = titulo
        styles = getSampleStyleSheet()
        self.estilo_titulo = ParagraphStyle(
            "Titulo", parent=styles["Heading1"], fontSize=18, textColor=COR_MARCA, alignment=1, spaceAfter=6,
        )
        self.estilo_secao = ParagraphStyle(
            "Secao", parent=styles["Heading2"], fontSize=12, textColor=COR_TEXTO, spaceBefore=14, spaceAfter=6,
        )
        self.estilo_corpo = ParagraphStyle(
            "Corpo", parent=styles["Normal"], fontSize=9.5, textColor=COR_TEXTO, leading=13,
        )
        self.estilo_rodape = ParagraphStyle(
            "Rodape", parent=self.estilo_corpo, fontSize=7.5, textColor=colors.grey, alignment=1,
        )
        self.story: List[Any] = []

    def secao(self, titulo: str):
        self.story.append(Paragraph(titulo, self.estilo_secao))

    def paragrafo(self, texto: Optional[str]):
        conteudo = _txt(texto).replace("\n", "<br/>")
        self.story.append(Paragraph(conteudo, self.estilo_corpo))

    def tabela_campos(self, linhas: List[List[str]]):
        dados = [[Paragraph(f"<b>{r}</b>", self.estilo_corpo), Paragraph(v, self.estilo_corpo)] for r, v in linhas]
        tabela = Table(dados, colWidths=[4.5 * cm, 12.5 * cm])
        tabela.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
            ("LINEBELOW", (0, 0), (-1, -1), 0.25, colors.lightgrey),
        ]))
        self.story.append(tabela)

    def tabela_grade(self, cabecalho: List[str], linhas: List[List[str]], larguras: List[float]):
        tabela = Table([cabecalho] + linhas, colWidths=larguras, repeatRows=1)
        tabela.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), COR_MARCA),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONT", (0, 0), (-1, 0), "Helvetica-Bold", 9),
            ("FONT", (0, 1), (-1, -1), "Helvetica", 9),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, COR_FUNDO]),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ]))
        self.story.append(tabela)

    def assinaturas(self, esquerda: str, direita: str):
        tabela = Table(
            [["", ""], ["_" * 38, "_" * 38], [esquerda, direita]],
            colWidths=[8.5 * cm, 8.5 * cm],
            rowHeights=[1.2 * cm, None, None],
        )
        tabela.setStyle(TableStyle([
            ("ALIGN", (0, 0), (-1, -1), "CENTER"),
            ("FONT", (0, 2), (-1, 2), "Helvetica", 9),
        ]))
        self.story.append(tabela)

    def qr_code(self, conteudo: str, tamanho: float = 3.2 * cm):
        widget = QrCodeWidget(conteudo)
        x1, y1, x2, y2 = widget.getBounds()
        desenho = Drawing(tamanho, tamanho, transform=[tamanho / (x2 - x1), 0, 0, tamanho / (y2 - y1), 0, 0])
        desenho.add(widget)
        self.story.append(desenho)

    def _rodape(self, canvas_obj, doc):
        canvas_obj.saveState()
        canvas_obj.setFont("Helvetica", 8)
        canvas_obj.setFillColor(colors.grey)
        canvas_obj.drawString(self.margem, self.margem / 2, f"{settings.EMPRESA_NOME} - {settings.PROJECT_NAME}")
        canvas_obj.drawRightString(A4[0] - self.margem, self.margem / 2, f"Página {canvas_obj.getPageNumber()}")
        canvas_obj.restoreState()

    def construir(self) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=self.margem,
            rightMargin=self.margem,
            topMargin=self.margem,
            bottomMargin=self.margem,
            title=self.titulo,
        )
        doc.build(self.story, onFirstPage=self._rodape, onLaterPages=self._rodape)
        conteudo = buffer.getvalue()
        buffer.close()
        return conteudo


def gerar_pdf_os(os: OrdemServico) -> bytes:
    """PDF da ordem de serviço com dados do cliente, do serviço e QR code."""
    ticket = os.ticket
    cliente = ticket.cliente if ticket else None
    doc = _DocumentoPDF(f"Ordem de Serviço {os.numero_os}")

    doc.story.append(Paragraph("ORDEM DE SERVIÇO", doc.estilo_titulo))
    doc.story.append(Paragraph(f"<b>{_txt(os.numero_os)}</b>", ParagraphStyle("Num", parent=doc.estilo_corpo, alignment=1, fontSize=12)))
    doc.story.append(Spacer(1, 0.4 * cm))
    doc.tabela_campos([
        ["Emissão", _data_hora(os.data_emissao or agora_utc())],
        ["Ticket", _txt(ticket.numero_ticket if ticket else None)],
        ["Técnico", _txt(os.tecnico.nome if os.tecnico else None)],
        ["Data programada", _data(os.data_programada)],
        ["Horário", f"{os.hora_inicio.strftime('%H:%M')} - {os.hora_fim.strftime('%H:%M')}" if os.hora_inicio and os.hora_fim else "-"],
    ])

    doc.secao("DADOS DO CLIENTE")
    doc.tabela_campos([
        ["Empresa", _txt(cliente.empresa if cliente else None)],
        ["CNPJ/CPF", _txt(cliente.cnpj_cpf if cliente else None)],
        ["Telefone", _txt(cliente.telefone if cliente else None)],
        ["E-mail", _txt(cliente.email if cliente else None)],
    ])

    doc.secao("ENDEREÇO")
    endereco = (ticket.endereco_servico if ticket else None) or (cliente.endereco if cliente else None)
    linhas_endereco = [["Endereço", _txt(endereco)]]
    if cliente:
        linhas_endereco.append(["Cidade/UF", _txt(" / ".join(p for p in [cliente.cidade, cliente.estado] if p) or None)])
        linhas_endereco.append(["CEP", _txt(cliente.cep)])
    doc.tabela_campos(linhas_endereco)

    doc.secao("DADOS DO SERVIÇO")
    doc.tabela_campos([
        ["Título", _txt(ticket.titulo if ticket else None)],
        ["Prioridade", _txt(ROTULOS_PRIORIDADE.get(ticket.prioridade, ticket.prioridade) if ticket else None)],
        ["Equipamento", _txt(ticket.equipamento_tipo if ticket else None)],
        ["Tempo estimado", f"{ticket.tempo_estimado} h" if ticket and ticket.tempo_estimado else "-"],
        ["Descrição", _txt(ticket.descricao if ticket else None).replace("\n", "<br/>")],
    ])

    doc.secao("OBSERVAÇÕES")
    doc.paragrafo(os.observacoes or (ticket.observacoes if ticket else None))

    doc.secao("ASSINATURAS")
    doc.assinaturas("Técnico responsável", "Cliente")

    if os.qr_code:
        doc.story.append(Spacer(1, 0.6 * cm))
        doc.qr_code(os.qr_code)
        doc.story.append(Paragraph(_txt(os.qr_code), doc.estilo_rodape))

    conteudo = doc.construir()
    logger.info(f"PDF da OS {os.numero_os} gerado ({len(conteudo)} bytes)")
    return conteudo


def gerar_pdf_rme(rme: RMERelatorio) -> bytes:
    os = rme.ordem_servico
    ticket = rme.ticket
    cliente = ticket.cliente if ticket else None
    doc = _DocumentoPDF("Relatório de Manutenção Executada")

    doc.story.append(Paragraph("RELATÓRIO DE MANUTENÇÃO EXECUTADA", doc.estilo_titulo))
    doc.story.append(Spacer(1, 0.3 * cm))

    doc.secao("IDENTIFICAÇÃO")
    doc.tabela_campos([
        ["Ordem de serviço", _txt(os.numero_os if os else None)],
        ["Ticket", _txt(f"{ticket.numero_ticket} - {ticket.titulo}" if ticket else None)],
        ["Cliente", _txt(cliente.empresa if cliente else None)],
        ["Técnico", _txt(rme.tecnico.nome if rme.tecnico else None)],
        ["Equipamento", _txt(rme.equipamento.nome if rme.equipamento else None)],
        ["Data de execução", _data(rme.data_execucao)],
    ])

    doc.secao("SERVIÇO E TURNO")
    doc.tabela_campos([
        ["Usina", _txt(rme.nome_usina)],
        ["Dia da semana", _txt(rme.dia_semana)],
        ["Turno", _txt(ROTULOS_TURNO.get(rme.turno, rme.turno))],
        ["Horário", _txt(_intervalo(rme.hora_inicio, rme.hora_fim))],
        ["Tipo de serviço", _txt(", ".join(ROTULOS_TIPO_SERVICO.get(t, t) for t in rme.tipo_servico or []))],
        ["Micro / inversor", _txt(" / ".join(n for n in (rme.numero_micro, rme.numero_inversor) if n))],
        ["Colaboração", _txt(", ".join(rme.colaboracao or []))],
    ])

    grupos = agrupar_por_categoria(rme.checklist_items or [])
    if grupos:
        doc.secao("CHECKLISTS")
        for categoria, itens in grupos.items():
            marcados = sum(1 for i in itens if i.checked)
            doc.tabela_grade(
                [f"{ROTULOS_CATEGORIA.get(categoria, categoria)} ({marcados}/{len(itens)})", ""],
                [[_txt(i.label), "Sim" if i.checked else "Não"] for i in itens],
                [14 * cm, 3 * cm],
            )
            doc.story.append(Spacer(1, 0.2 * cm))

    doc.secao("EVIDÊNCIAS")
    doc.tabela_campos([
        ["Fotos antes / depois", f"{len(rme.fotos_antes or [])} / {len(rme.fotos_depois or [])}"],
        ["Imagens postadas", "Sim" if rme.imagens_postadas else "Não"],
        ["Módulos limpos", _txt(rme.qtd_modulos_limpos, "0")],
        ["String box", _txt(rme.qtd_string_box, "0")],
    ])

    doc.secao("CONDIÇÕES ENCONTRADAS")
    doc.paragrafo(rme.condicoes_encontradas)
    doc.secao("SERVIÇOS EXECUTADOS")
    doc.paragrafo(rme.servicos_executados)
    doc.secao("TESTES REALIZADOS")
    doc.paragrafo(rme.testes_realizados)
    if rme.observacoes_tecnicas:
        doc.secao("OBSERVAÇÕES TÉCNICAS")
        doc.paragrafo(rme.observacoes_tecnicas)

    doc.secao("MATERIAIS UTILIZADOS")
    materiais = rme.materiais_utilizados or []
    if materiais:
        doc.tabela_grade(
            ["Material", "Quantidade", "Unidade"],
            [[_txt(m.get("nome")), _txt(m.get("quantidade")), _txt(m.get("unidade"))] for m in materiais],
            [10 * cm, 3.5 * cm, 3.5 * cm],
        )
    else:
        doc.paragrafo("Nenhum material registrado.")

    doc.secao("MEDIÇÕES ELÉTRICAS")
    medicoes = rme.medicoes_eletricas or {}
    if medicoes:
        doc.tabela_grade(
            ["Medição", "Valor"],
            [[_txt(chave), _txt(valor)] for chave, valor in medicoes.items()],
            [10 * cm, 7 * cm],
        )
    else:
        doc.paragrafo("Nenhuma medição registrada.")

    doc.secao("ASSINATURAS")
    doc.assinaturas(
        f"Técnico: {rme.tecnico.nome if rme.tecnico else ''}",
        f"Cliente: {rme.nome_cliente_assinatura or ''}",
    )
    assinaturas = rme.assinaturas or {}
    doc.tabela_grade(
        ["Função", "Nome", "Assinado em"],
        [
            [rotulo, _txt((assinaturas.get(chave) or {}).get("nome")), _txt(_assinado_em(assinaturas.get(chave)))]
            for chave, rotulo in ROTULOS_ASSINATURA
        ],
        [5.5 * cm, 7 * cm, 4.5 * cm],
    )

    doc.secao("APROVAÇÃO")
    doc.tabela_campos([
        ["Situação", _txt(rme.status_aprovacao)],
        ["Aprovado por", _txt(rme.aprovador.nome_completo or rme.aprovador.nome_usuario if rme.aprovador else None)],
        ["Data", _data_hora(rme.data_aprovacao)],
        ["Observações", _txt(rme.observacoes_aprovacao)],
    ])

    conteudo = doc.construir()
    logger.info(f"PDF do RME {rme.id} gerado ({len(conteudo)} bytes)")
    return conteudo
