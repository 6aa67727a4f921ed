#!/usr/bin/env python3
"""
Quick Start Guide for Forgiving XML.

Walks through loading XML whose charset label is wrong or missing, and
whose text contains stray ampersands.
"""

import sys
import tempfile
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from forgiving_xml import DocumentConfig, XmlDocument, XmlEncoding, parse


def quick_start_example():
    """Quick start example showing basic usage."""

    print("🚀 QUICK START - Forgiving XML")
    print("=" * 45)

    # Step 1: Scraped data with a raw query string
    print("\n📄 Step 1: Stray ampersands")
    print("-" * 30)

    doc = parse(b"<link>http://example.com/?a=1&b=2</link>")
    print(f"✅ Parsed: {doc.is_parsed}")
    print(f"🔗 Link text: {doc.root.text}")

    # Step 2: A wrong charset suggestion
    print("\n🔤 Step 2: Wrong charset label")
    print("-" * 30)

    data = "<title>Привет</title>".encode("utf-8")
    doc = parse(data, charset="US-ASCII")
    print(f"💡 Suggested: {doc.suggested_charset}")
    print(f"✅ Used: {doc.used_charset}")
    for entry in doc.diagnostics:
        print(f"  - {entry.severity.name}: {entry.message}")

    # Step 3: Files and saving
    print("\n💾 Step 3: Load and save a legacy file")
    print("-" * 30)

    with tempfile.TemporaryDirectory() as tmp:
        source = Path(tmp) / "legacy.xml"
        source.write_bytes(b'<?xml version="1.0" encoding="windows-1252"?><menu>Caf\xe9 & cr\xe8me</menu>')

        document = XmlDocument(source)
        if document.load_file():
            print(f"✅ Loaded as {document.used_charset}: {document.root.text}")
            target = Path(tmp) / "utf8.xml"
            document.save_file(target)
            print(f"📦 Saved UTF-8 copy: {target.read_bytes()[:60]!r}")
        else:
            print(f"❌ {document.error_message}")

    # Step 4: Forced encodings and configuration
    print("\n⚙️  Step 4: Forced encoding and strict configuration")
    print("-" * 30)

    document = XmlDocument(config=DocumentConfig.strict())
    ok = document.parse(b"<a>caf\xe9</a>", encoding=XmlEncoding.UTF8)
    print(f"🔒 Forced UTF-8 on Latin-1 bytes: {ok}")
    if not ok:
        print(f"  - {document.error_message}")


if __name__ == "__main__":
    quick_start_example()
