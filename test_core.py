"""Tests for the high-level API and the command-line interface."""

import pytest

from conftest import SITE, FakeSession, langlinks_body
from test_extract_references import write_odt
from odf_link_checker import OdfLinkChecker, ProcessingConfig
from odf_link_checker.cli import create_config_from_args, create_parser, main
from odf_link_checker.extract_references import load_document
from odf_link_checker.results import Classification

ARTICLE = "http://en.example.org/wiki/Lorem_ipsum"
CONTENT_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<office:document-content xmlns:office="urn:oasis:names:tc:opendocument:xmlns:office:1.0"
 xmlns:text="urn:oasis:names:tc:opendocument:xmlns:text:1.0"
 xmlns:xlink="http://www.w3.org/1999/xlink">
<office:body><office:text>
<text:p><text:a xlink:type="simple" xlink:href="{ARTICLE}">Lorem</text:a></text:p>
<text:p><text:a xlink:type="simple" xlink:href="https://github.com/takimata">code</text:a></text:p>
</office:text></office:body>
</office:document-content>
"""


@pytest.fixture
def wiki_session():
    session = FakeSession()
    session.add_langlinks('en', 'Lorem_ipsum', 'fr', langlinks_body('fr', 'Lorem ipsum'))
    session.add_head("https://github.com/takimata")
    return session


def make_checker(session, **options):
    config = ProcessingConfig(site=SITE, print_results=False, **options)
    return OdfLinkChecker(config, session=session)


def test_check_hrefs(wiki_session):
    checker = make_checker(wiki_session)
    report = checker.check_hrefs('fr', [ARTICLE, "mailto:a@b.c", ARTICLE])

    assert report.input_name == "3 hrefs"
    assert report.replacements[ARTICLE] == "https://fr.example.org/wiki/Lorem_ipsum"
    assert report.counts['ignored'] == 1
    assert report.consistent
    assert report.results[ARTICLE].classification == Classification.REPLACE
    assert checker.get_summary_stats()['input_urls'] == 3
    assert wiki_session.closed


def test_check_file_saves_replacements(tmp_path, wiki_session, capsys):
    source = write_odt(tmp_path / "doc.odt", content=CONTENT_XML)
    output = str(tmp_path / "fixed.odt")

    report = make_checker(wiki_session, parallelism=2).check_file(source, output)

    assert report.language == 'fr'
    assert "Saving to" in capsys.readouterr().out
    assert load_document(output).hrefs == [
        "https://fr.example.org/wiki/Lorem_ipsum",
        "https://github.com/takimata",
    ]


def test_export_to_csv(tmp_path, wiki_session):
    checker = make_checker(wiki_session)
    with pytest.raises(RuntimeError):
        checker.export_to_csv(str(tmp_path))
    checker.check_hrefs('fr', [ARTICLE])
    path = checker.export_to_csv(str(tmp_path / "results.csv"))
    assert path.endswith("results.csv")


def test_session_closed_when_processing_fails(wiki_session, monkeypatch):
    checker = make_checker(wiki_session)

    def explode(self, url):
        raise RuntimeError("processing bug")

    monkeypatch.setattr("odf_link_checker.processor.UrlProcessor._process", explode)
    with pytest.raises(RuntimeError):
        checker.check_hrefs('fr', [ARTICLE])
    assert wiki_session.closed


def test_parser_defaults():
    args = create_parser().parse_args(["doc.odt"])
    config = create_config_from_args(args)
    assert args.output_file is None
    assert config.parallelism == 1
    assert config.language is None
    assert config.color is True


def test_parser_options():
    args = create_parser().parse_args([
        "doc.odt", "out.odt", "--parallel", "4", "--language", "fr",
        "--timeout", "3", "--site", SITE, "--no-color",
    ])
    config = create_config_from_args(args)
    assert args.output_file == "out.odt"
    assert config.parallelism == 4
    assert config.language == 'fr'
    assert config.timeout == 3.0
    assert config.site == SITE
    assert config.color is False


def test_main_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "missing.odt")]) == 1
    assert "File not found" in capsys.readouterr().out


def test_main_rejects_bad_parallelism():
    with pytest.raises(SystemExit):
        main(["doc.odt", "--parallel", "0"])
