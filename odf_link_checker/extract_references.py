"""
Document handling: reading hyperlinks and language out of a document and
writing replaced hyperlinks back into a copy of it.

Supported inputs are OpenDocument files (text, spreadsheet, presentation,
drawing) and HTML pages.
"""

import html
import logging
import os
import re
import zipfile
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

ODF_EXTENSIONS = ('.odt', '.ods', '.odp', '.odg', '.ott')
HTML_EXTENSIONS = ('.html', '.htm', '.xhtml')
DEFAULT_LANGUAGE = 'en'

# xlink:href attribute of a text:a element in content.xml
ODF_HREF_PATTERN = re.compile(r'(<text:a\b[^>]*?\sxlink:href=")([^"]*)(")', re.DOTALL)


class DocumentError(Exception):
    """Raised when a document cannot be read or written."""


@dataclass
class Document:
    """Hyperlinks and language of a document."""
    name: str
    language: str
    hrefs: List[str] = field(default_factory=list)
    kind: str = 'hrefs'
    path: Optional[str] = None


def init_from_hrefs(language: str, hrefs: List[str]) -> Document:
    """Build an in-memory document from a list of hrefs."""
    hrefs = list(hrefs)
    return Document(name=f"{len(hrefs)} hrefs", language=language, hrefs=hrefs)


def _language_code(value: Optional[str]) -> Optional[str]:
    """Two-letter part of a language tag such as fr-FR, or None if unset."""
    if not value:
        return None
    code = value.strip().split('-')[0].split('_')[0].lower()
    if not code or code in ('none', 'zxx', 'und'):
        return None
    return code


def extract_odf_hrefs(content_xml: str) -> List[str]:
    """Return the hyperlink targets of an ODF content.xml, in document order."""
    soup = BeautifulSoup(content_xml, 'html.parser')
    return [a.get('xlink:href') for a in soup.find_all('text:a') if a.get('xlink:href') is not None]


def extract_odf_language(styles_xml: Optional[str], meta_xml: Optional[str] = None) -> Optional[str]:
    """
    Return the document language of an ODF package.

    The language of the default paragraph style wins, the dc:language of
    the metadata is used otherwise.
    """
    if styles_xml:
        soup = BeautifulSoup(styles_xml, 'html.parser')
        for style in soup.find_all('style:default-style'):
            if style.get('style:family') != 'paragraph':
                continue
            props = style.find('style:text-properties')
            language = _language_code(props.get('fo:language')) if props is not None else None
            if language:
                return language
    if meta_xml:
        soup = BeautifulSoup(meta_xml, 'html.parser')
        tag = soup.find('dc:language')
        if tag is not None:
            return _language_code(tag.get_text())
    return None


def extract_html_hrefs(page: str) -> List[str]:
    soup = BeautifulSoup(page, 'html.parser')
    return [a['href'] for a in soup.find_all('a', href=True)]


def extract_html_language(page: str) -> Optional[str]:
    soup = BeautifulSoup(page, 'html.parser')
    root = soup.find('html')
    return _language_code(root.get('lang')) if root is not None else None


def _read_member(archive: zipfile.ZipFile, name: str) -> Optional[str]:
    try:
        return archive.read(name).decode('utf-8')
    except KeyError:
        return None


def _is_odf(path: str) -> bool:
    if path.lower().endswith(ODF_EXTENSIONS):
        return True
    if zipfile.is_zipfile(path):
        with zipfile.ZipFile(path) as archive:
            return 'content.xml' in archive.namelist()
    return False


def load_document(path: str, language: Optional[str] = None) -> Document:
    """
    Read the hyperlinks and language of a document.

    Args:
        path: ODF or HTML file
        language: Language overriding the one found in the document

    Returns:
        Document with its hrefs in document order
    """
    if not os.path.isfile(path):
        raise DocumentError(f"File not found: {path}")

    try:
        if _is_odf(path):
            with zipfile.ZipFile(path) as archive:
                content = _read_member(archive, 'content.xml')
                if content is None:
                    raise DocumentError(f"No content.xml in {path}")
                hrefs = extract_odf_hrefs(content)
                found = extract_odf_language(_read_member(archive, 'styles.xml'),
                                             _read_member(archive, 'meta.xml'))
            kind = 'odf'
        elif path.lower().endswith(HTML_EXTENSIONS):
            with open(path, 'r', encoding='utf-8') as f:
                page = f.read()
            hrefs = extract_html_hrefs(page)
            found = extract_html_language(page)
            kind = 'html'
        else:
            raise DocumentError(f"Unsupported document type: {path}")
    except (zipfile.BadZipFile, UnicodeDecodeError, OSError) as e:
        raise DocumentError(f"Cannot read {path}: {e}") from e

    if language is None:
        language = found
    if language is None:
        logger.warning(f"No language found in {path}, using '{DEFAULT_LANGUAGE}'")
        language = DEFAULT_LANGUAGE

    logger.info(f"Loaded {len(hrefs)} hrefs from {path} (language {language})")
    return Document(name=path, language=language, hrefs=hrefs, kind=kind, path=path)


def rewrite_odf_hrefs(content_xml: str, replacements: Dict[str, str]) -> Tuple[str, int]:
    """Replace hyperlink targets in content.xml. Returns the new XML and the number of changes."""
    count = 0

    def substitute(match):
        nonlocal count
        href = html.unescape(match.group(2))
        new = replacements.get(href)
        if new is None:
            return match.group(0)
        count += 1
        return match.group(1) + html.escape(new, quote=True) + match.group(3)

    return ODF_HREF_PATTERN.sub(substitute, content_xml), count


def save_document(document: Document, replacements: Dict[str, str], output_path: str) -> int:
    """
    Write a copy of document with its hyperlinks replaced.

    Returns:
        Number of hyperlinks rewritten
    """
    if document.path is None:
        raise DocumentError(f"{document.name} has no source file to save from")

    try:
        if document.kind == 'odf':
            with zipfile.ZipFile(document.path) as source:
                content, count = rewrite_odf_hrefs(source.read('content.xml').decode('utf-8'), replacements)
                infos = source.infolist()
                # mimetype must come first and be stored uncompressed
                infos.sort(key=lambda info: info.filename != 'mimetype')
                with zipfile.ZipFile(output_path, 'w') as target:
                    for info in infos:
                        data = content.encode('utf-8') if info.filename == 'content.xml' else source.read(info.filename)
                        if info.filename == 'mimetype':
                            info.compress_type = zipfile.ZIP_STORED
                        target.writestr(info, data)
        elif document.kind == 'html':
            with open(document.path, 'r', encoding='utf-8') as f:
                soup = BeautifulSoup(f.read(), 'html.parser')
            count = 0
            for a in soup.find_all('a', href=True):
                new = replacements.get(a['href'])
                if new is not None:
                    a['href'] = new
                    count += 1
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(str(soup))
        else:
            raise DocumentError(f"Cannot save document of kind {document.kind}")
    except (zipfile.BadZipFile, KeyError, UnicodeDecodeError, OSError) as e:
        raise DocumentError(f"Cannot save {output_path}: {e}") from e

    logger.info(f"Rewrote {count} hyperlinks into {output_path}")
    return count
