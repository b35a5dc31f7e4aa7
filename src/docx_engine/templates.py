"""
Static parts written into every new document.

Word expects a font table, web settings and a theme next to the main
document part. Their content does not depend on the document, so they are
kept here as ready-made XML.
"""

from .constants import (
    FONT_TABLE_PART,
    THEME_PART,
    WEB_SETTINGS_PART,
    ContentTypes,
    RelationshipTypes,
)

_DECLARATION = b'<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'

FONT_TABLE_XML = _DECLARATION + (
    b'<w:fonts xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main"'
    b' xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships">'
    b'<w:font w:name="Calibri"><w:panose1 w:val="020F0502020204030204"/><w:charset w:val="00"/>'
    b'<w:family w:val="swiss"/><w:pitch w:val="variable"/>'
    b'<w:sig w:usb0="E4002EFF" w:usb1="C000247B" w:usb2="00000009" w:usb3="00000000"'
    b' w:csb0="000001FF" w:csb1="00000000"/></w:font>'
    b'<w:font w:name="Times New Roman"><w:panose1 w:val="02020603050405020304"/>'
    b'<w:charset w:val="00"/><w:family w:val="roman"/><w:pitch w:val="variable"/>'
    b'<w:sig w:usb0="E0002EFF" w:usb1="C000785B" w:usb2="00000009" w:usb3="00000000"'
    b' w:csb0="000001FF" w:csb1="00000000"/></w:font>'
    b'<w:font w:name="Calibri Light"><w:panose1 w:val="020F0302020204030204"/>'
    b'<w:charset w:val="00"/><w:family w:val="swiss"/><w:pitch w:val="variable"/>'
    b'<w:sig w:usb0="E4002EFF" w:usb1="C000247B" w:usb2="00000009" w:usb3="00000000"'
    b' w:csb0="000001FF" w:csb1="00000000"/></w:font>'
    b"</w:fonts>"
)

WEB_SETTINGS_XML = _DECLARATION + (
    b'<w:webSettings xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">'
    b"<w:optimizeForBrowser/><w:allowPNG/></w:webSettings>"
)


def _solid(color: bytes) -> bytes:
    return b"<a:solidFill>" + color + b"</a:solidFill>"


def _scheme(name: bytes, transforms: bytes = b"") -> bytes:
    return b'<a:schemeClr val="' + name + b'">' + transforms + b"</a:schemeClr>"


_LINE = (
    b'<a:ln w="{width}" cap="flat" cmpd="sng" algn="ctr">'
    + _solid(_scheme(b"phClr"))
    + b'<a:prstDash val="solid"/><a:miter lim="800000"/></a:ln>'
)

THEME_XML = _DECLARATION + (
    b'<a:theme xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main" name="Office Theme">'
    b"<a:themeElements>"
    b'<a:clrScheme name="Office">'
    b'<a:dk1><a:sysClr val="windowText" lastClr="000000"/></a:dk1>'
    b'<a:lt1><a:sysClr val="window" lastClr="FFFFFF"/></a:lt1>'
    b'<a:dk2><a:srgbClr val="44546A"/></a:dk2>'
    b'<a:lt2><a:srgbClr val="E7E6E6"/></a:lt2>'
    b'<a:accent1><a:srgbClr val="4472C4"/></a:accent1>'
    b'<a:accent2><a:srgbClr val="ED7D31"/></a:accent2>'
    b'<a:accent3><a:srgbClr val="A5A5A5"/></a:accent3>'
    b'<a:accent4><a:srgbClr val="FFC000"/></a:accent4>'
    b'<a:accent5><a:srgbClr val="5B9BD5"/></a:accent5>'
    b'<a:accent6><a:srgbClr val="70AD47"/></a:accent6>'
    b'<a:hlink><a:srgbClr val="0563C1"/></a:hlink>'
    b'<a:folHlink><a:srgbClr val="954F72"/></a:folHlink>'
    b"</a:clrScheme>"
    b'<a:fontScheme name="Office">'
    b'<a:majorFont><a:latin typeface="Calibri Light"/><a:ea typeface=""/><a:cs typeface=""/></a:majorFont>'
    b'<a:minorFont><a:latin typeface="Calibri"/><a:ea typeface=""/><a:cs typeface=""/></a:minorFont>'
    b"</a:fontScheme>"
    b'<a:fmtScheme name="Office">'
    b"<a:fillStyleLst>"
    + _solid(_scheme(b"phClr"))
    + _solid(_scheme(b"phClr", b'<a:tint val="50000"/>'))
    + _solid(_scheme(b"phClr", b'<a:shade val="80000"/>'))
    + b"</a:fillStyleLst>"
    b"<a:lnStyleLst>"
    + _LINE.replace(b"{width}", b"6350")
    + _LINE.replace(b"{width}", b"12700")
    + _LINE.replace(b"{width}", b"19050")
    + b"</a:lnStyleLst>"
    b"<a:effectStyleLst>"
    b"<a:effectStyle><a:effectLst/></a:effectStyle>"
    b"<a:effectStyle><a:effectLst/></a:effectStyle>"
    b"<a:effectStyle><a:effectLst/></a:effectStyle>"
    b"</a:effectStyleLst>"
    b"<a:bgFillStyleLst>"
    + _solid(_scheme(b"phClr"))
    + _solid(_scheme(b"phClr", b'<a:tint val="95000"/>'))
    + _solid(_scheme(b"phClr", b'<a:shade val="90000"/>'))
    + b"</a:bgFillStyleLst>"
    b"</a:fmtScheme>"
    b"</a:themeElements>"
    b"<a:objectDefaults/><a:extraClrSchemeLst/>"
    b"</a:theme>"
)

# (part name, relative target from word/document.xml, relationship type, content type, bytes)
STATIC_PARTS = (
    (FONT_TABLE_PART, "fontTable.xml", RelationshipTypes.FONT_TABLE, ContentTypes.FONT_TABLE, FONT_TABLE_XML),
    (
        WEB_SETTINGS_PART,
        "webSettings.xml",
        RelationshipTypes.WEB_SETTINGS,
        ContentTypes.WEB_SETTINGS,
        WEB_SETTINGS_XML,
    ),
    (THEME_PART, "theme/theme1.xml", RelationshipTypes.THEME, ContentTypes.THEME, THEME_XML),
)
