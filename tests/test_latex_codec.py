"""Tests for the LaTeX codec.

Covers:
- Title, authors, date, abstract and keywords from the preamble
- Sections, paragraphs and inline commands
- Math, lists, code, figures and tables
- Standalone documents and fragments on encode
"""

from __future__ import annotations

import pytest

from docbridge import collect_losses, dump, load
from docbridge.codecs.latex_codec import escape
from docbridge.model import (
    Article,
    Cite,
    CiteGroup,
    CodeBlock,
    CodeFragment,
    Date,
    Emphasis,
    Figure,
    Heading,
    ImageObject,
    Link,
    List,
    ListItem,
    MathBlock,
    MathFragment,
    Paragraph,
    Person,
    Strong,
    Table,
    TableCell,
    TableRow,
    ThematicBreak,
)


SAMPLE = r"""
\documentclass{article}
\title{A \textbf{Bold} Study}
\author{Ada Lovelace \\ Analytical Society \and Alan Turing}
\date{2024-02-03}
\keywords{engines, computation}
\begin{document}
\maketitle
\begin{abstract}
We study engines.
\end{abstract}

Preface text.

\section{Introduction}
This has \emph{emphasis}, 50\% of \texttt{code} and $x^2$ math. % a comment
See \cite{babbage1837} and \href{https://example.org}{the site}.

\subsection{Method}
\begin{equation}
\label{eq:one}
E = mc^2
\end{equation}

\begin{itemize}
\item First
\item Second
\end{itemize}

\begin{lstlisting}[language=python]
print("hi")
\end{lstlisting}

\begin{figure}
\centering
\includegraphics[width=0.5\linewidth]{plot.png}
\caption{A plot}
\label{fig:plot}
\end{figure}

\begin{table}
\caption{Numbers}
\begin{tabular}{ll}
\hline
A & B \\
\hline
1 & 2 \\
\hline
\end{tabular}
\end{table}

\hrulefill
\end{document}
"""


@pytest.mark.asyncio
async def test_decode_front_matter() -> None:
    article = await load(SAMPLE, "latex")

    assert isinstance(article, Article)
    assert article.title == "A Bold Study"
    assert article.authors == [
        Person(given_names=["Ada"], family_names=["Lovelace"]),
        Person(given_names=["Alan"], family_names=["Turing"]),
    ]
    assert article.date_published == Date(value="2024-02-03")
    assert article.description == "We study engines."
    assert article.keywords == ["engines", "computation"]


@pytest.mark.asyncio
async def test_decode_body() -> None:
    article = await load(SAMPLE, "latex")
    content = article.content

    assert content[0] == Paragraph(content=["Preface text."])
    assert content[1] == Heading(depth=1, content=["Introduction"])
    assert content[2] == Paragraph(
        content=[
            "This has ",
            Emphasis(content=["emphasis"]),
            ", 50% of ",
            CodeFragment(text="code"),
            " and ",
            MathFragment(text="x^2"),
            " math. See ",
            Cite(target="babbage1837"),
            " and ",
            Link(target="https://example.org", content=["the site"]),
            ".",
        ]
    )
    assert content[3] == Heading(depth=2, content=["Method"])
    assert content[4] == MathBlock(text="E = mc^2", label="eq:one")
    assert content[5] == List(
        items=[ListItem(content=[Paragraph(content=["First"])]), ListItem(content=[Paragraph(content=["Second"])])]
    )
    assert content[6] == CodeBlock(text='print("hi")', programming_language="python")
    assert content[7] == Figure(
        label="fig:plot",
        caption=[Paragraph(content=["A plot"])],
        content=[ImageObject(content_url="plot.png")],
    )
    table = content[8]
    assert isinstance(table, Table)
    assert table.caption == [Paragraph(content=["Numbers"])]
    assert [row.row_type for row in table.rows] == ["header", None]
    assert [[cell.content for cell in row.cells] for row in table.rows] == [[["A"], ["B"]], [["1"], ["2"]]]
    assert content[9] == ThematicBreak()


@pytest.mark.asyncio
async def test_decode_citation_groups_and_task_items() -> None:
    text = r"""
See \cite[p.~4]{a, b}.

\begin{itemize}
\item[$\boxtimes$] done
\item[$\square$] todo
\end{itemize}
"""
    article = await load(text, "latex")

    assert article.content[0] == Paragraph(
        content=["See ", CiteGroup(items=[Cite(target="a"), Cite(target="b", suffix="p.~4")]), "."]
    )
    assert [item.is_checked for item in article.content[1].items] == [True, False]


@pytest.mark.asyncio
async def test_footnotes_are_dropped_with_a_warning(caplog: pytest.LogCaptureFixture) -> None:
    article = await load(r"Text\footnote{a note} here.", "latex")

    assert article.content == [Paragraph(content=["Text here."])]
    assert "Dropping LaTeX footnote: a note" in caplog.text


def test_escape() -> None:
    assert escape(r"50% & $5 #1 a_b {x} ~ ^ \ ") == (
        r"50\% \& \$5 \#1 a\_b \{x\} \textasciitilde{} \textasciicircum{} \textbackslash{} "
    )


@pytest.mark.asyncio
async def test_encode_standalone_article() -> None:
    article = Article(
        title="Notes",
        authors=[Person(given_names=["Ada"], family_names=["Lovelace"])],
        description="Short.",
        content=[
            Heading(depth=1, content=["Intro"]),
            Paragraph(content=["Plain ", Strong(content=["bold"]), " 100%"]),
        ],
    )

    tex = await dump(article, "latex")

    assert tex.startswith("\\documentclass{article}")
    assert "\\title{Notes}" in tex
    assert "\\author{Ada Lovelace}" in tex
    assert "\\begin{abstract}\nShort.\n\\end{abstract}" in tex
    assert "\\section{Intro}" in tex
    assert "Plain \\textbf{bold} 100\\%" in tex
    assert tex.endswith("\\end{document}\n")


@pytest.mark.asyncio
async def test_encode_fragment() -> None:
    tex = await dump([Heading(depth=2, content=["Part"]), Paragraph(content=["x"])], "latex")

    assert tex == "\\subsection{Part}\n\nx\n"


@pytest.mark.asyncio
async def test_deep_headings_are_clamped() -> None:
    with collect_losses() as report:
        tex = await dump(Heading(depth=5, content=["Deep"]), "latex")

    assert tex == "\\subsubsection{Deep}\n"
    assert report.properties("Heading") == {"depth"}


@pytest.mark.asyncio
async def test_round_trip() -> None:
    article = Article(
        title="Notes",
        authors=[Person(given_names=["Ada"], family_names=["Lovelace"])],
        date_published=Date(value="2024-01-01"),
        content=[
            Heading(depth=1, content=["Intro"]),
            Paragraph(content=["Plain ", Emphasis(content=["styled"]), " text with 50% off."]),
            MathBlock(text="E = mc^2", label="eq:1"),
            List(
                order="ascending",
                items=[ListItem(content=[Paragraph(content=["one"])]), ListItem(content=[Paragraph(content=["two"])])],
            ),
            CodeBlock(text="x <- 1", programming_language="R"),
            Table(
                rows=[
                    TableRow(cells=[TableCell(content=["A"]), TableCell(content=["B"])], row_type="header"),
                    TableRow(cells=[TableCell(content=["1"]), TableCell(content=["2"])]),
                ]
            ),
            ThematicBreak(),
        ],
    )

    assert await load(await dump(article, "latex"), "latex") == article
