import unittest

from pem_armor import (
    AsymmetricID, AsymmetricOriginator, AsymmetricRecipient, Certificate, ContentError, DEKInfo,
    EnvelopeError, HeaderBlock, HeaderError, KeyInfoSymmetric, Message, ParseError, ProcType,
    ProcTypeKind, SymmetricID, SymmetricOriginator, parse,
)
from pem_armor.models import SymmetricRecipient

from tests.pem_samples import RFC1421_FIGURE2, RFC1421_FIGURE3, RFC1421_FIGURE4

SIMPLE = "-----BEGIN MESSAGE-----\nVGhpcyBpcyBhIG1lc3NhZ2U=\n-----END MESSAGE-----"


class EnvelopeTests(unittest.TestCase):
    def test_simple_message(self):
        message = parse(SIMPLE)
        self.assertEqual(message.label, "MESSAGE")
        self.assertEqual(message.headers, HeaderBlock())
        self.assertEqual(message.content, b"This is a message")
        self.assertEqual(message.render(), SIMPLE)

    def test_message_parse_classmethod(self):
        self.assertEqual(Message.parse(SIMPLE), parse(SIMPLE))

    def test_parse_is_repeatable(self):
        self.assertEqual(parse(RFC1421_FIGURE3), parse(RFC1421_FIGURE3))

    def test_empty_block(self):
        message = parse("-----BEGIN EMPTY-----\n-----END EMPTY-----\n")
        self.assertEqual(message.label, "EMPTY")
        self.assertEqual(message.content, b"")

    def test_label_keeps_spaces_and_hyphens(self):
        message = parse("-----BEGIN RSA PRIVATE-KEY X-----\nQUJD\n-----END RSA PRIVATE-KEY X-----")
        self.assertEqual(message.label, "RSA PRIVATE-KEY X")

    def test_surrounding_text_is_ignored(self):
        text = "Subject: hello\n\nsome preamble\n" + SIMPLE + "\ntrailing junk: here\n"
        self.assertEqual(parse(text).content, b"This is a message")

    def test_crlf_line_endings(self):
        text = SIMPLE.replace("\n", "\r\n")
        self.assertEqual(parse(text).content, b"This is a message")

    def test_content_lines_are_stripped(self):
        text = "-----BEGIN X-----\n  VGhp  \n\ncw==\t\n-----END X-----"
        self.assertEqual(parse(text).content, b"This")

    def test_missing_block(self):
        with self.assertRaises(EnvelopeError) as ctx:
            parse("no armor here\n")
        err = ctx.exception
        self.assertEqual(err.message, "Missing PEM block")
        self.assertEqual((err.line, err.column, err.offset), (1, 1, 0))

    def test_missing_end_boundary(self):
        with self.assertRaises(EnvelopeError) as ctx:
            parse("-----BEGIN PRIVACY-ENHANCED MESSAGE-----\nQUJD\n")
        self.assertEqual(ctx.exception.line, 1)

    def test_mismatched_end_label(self):
        with self.assertRaises(EnvelopeError) as ctx:
            parse("-----BEGIN PRIVACY-ENHANCED MESSAGE-----\nQUJD\n-----END MESSAGE-----\n")
        err = ctx.exception
        self.assertIn("does not match", err.message)
        self.assertEqual((err.line, err.column), (3, 10))

    def test_nested_begin(self):
        with self.assertRaises(EnvelopeError):
            parse("-----BEGIN A-----\n-----BEGIN B-----\nQUJD\n-----END A-----\n")

    def test_headers_need_blank_separator(self):
        with self.assertRaises(EnvelopeError):
            parse("-----BEGIN X-----\nProc-Type: 4,CRL\n-----END X-----")

    def test_invalid_content_is_positioned(self):
        with self.assertRaises(ContentError) as ctx:
            parse("-----BEGIN X-----\nVGhp\nc*Bp\n-----END X-----")
        err = ctx.exception
        self.assertEqual((err.line, err.column), (3, 2))
        self.assertIn("-->", str(err))

    def test_errors_share_a_base(self):
        for text in ("", "-----BEGIN X-----\n!!\n-----END X-----"):
            with self.assertRaises(ParseError):
                parse(text)
            with self.assertRaises(ValueError):
                parse(text)


class HeaderSectionTests(unittest.TestCase):
    ENCRYPTED = (
        "-----BEGIN PRIVACY-ENHANCED MESSAGE-----\n"
        "Proc-Type: 4,ENCRYPTED\n"
        "Content-Domain: RFC822\n"
        "DEK-Info: DES-CBC,F8143EDE5960C597\n"
        "\n"
        "VGhpcyBpcyBhIG1lc3NhZ2U=\n"
        "-----END PRIVACY-ENHANCED MESSAGE-----"
    )

    def test_core_header_fields(self):
        message = parse(self.ENCRYPTED)
        headers = message.headers
        self.assertEqual(headers.proc_type, ProcType(version=4, kind=ProcTypeKind.ENCRYPTED))
        self.assertEqual(headers.content_domain, "RFC822")
        self.assertEqual(headers.dek_info,
                         DEKInfo(algorithm="DES-CBC", parameter=bytes.fromhex("F8143EDE5960C597")))
        self.assertEqual(message.content, b"This is a message")
        self.assertEqual(message.render(), self.ENCRYPTED)

    def test_invalid_dek_hex_fails_with_position(self):
        text = self.ENCRYPTED.replace("DES-CBC,F8143EDE5960C597", "DES-CBC,ZZ")
        with self.assertRaises(HeaderError) as ctx:
            parse(text)
        self.assertEqual((ctx.exception.line, ctx.exception.column), (4, 19))

    def test_bogus_proc_type_specifier(self):
        text = self.ENCRYPTED.replace("4,ENCRYPTED", "4,BOGUS")
        with self.assertRaises(HeaderError) as ctx:
            parse(text)
        self.assertEqual((ctx.exception.line, ctx.exception.column), (2, 14))

    def test_header_value_with_form_feed(self):
        text = self.ENCRYPTED.replace("Content-Domain: RFC822", "Content-Domain: RFC822\x0cpart two ")
        message = parse(text)
        self.assertEqual(message.headers.content_domain, "RFC822\x0cpart two ")
        self.assertEqual(message.render(), text)

    def test_first_header_line_keeps_trailing_blanks(self):
        text = self.ENCRYPTED.replace("Content-Domain: RFC822\n", "Content-Domain: RFC822 \n continued\n")
        self.assertEqual(parse(text).headers.content_domain, "RFC822 continued")

    def test_headers_with_empty_content(self):
        message = parse("-----BEGIN X-----\nProc-Type: 4,CRL\n\n-----END X-----")
        self.assertEqual(message.headers.proc_type.kind, ProcTypeKind.CRL)
        self.assertEqual(message.content, b"")


class Rfc1421FigureTests(unittest.TestCase):
    def test_figure2_symmetric(self):
        message = parse(RFC1421_FIGURE2)
        self.assertEqual(message.label, "PRIVACY-ENHANCED MESSAGE")
        headers = message.headers
        self.assertEqual(headers.dek_info.parameter, bytes.fromhex("F8143EDE5960C597"))
        self.assertEqual(headers.originator,
                         SymmetricOriginator(id=SymmetricID(name="linn@zendia.enet.dec.com")))
        self.assertEqual(len(headers.recipients), 2)
        first = headers.recipients[0]
        self.assertIsInstance(first, SymmetricRecipient)
        self.assertEqual(first.id, SymmetricID(name="linn@zendia.enet.dec.com", domain="ptf-kmc", sequence="3"))
        self.assertEqual(first.key_info, KeyInfoSymmetric(
            algorithm="DES-ECB",
            mic_algorithm="RSA-MD2",
            dek=bytes.fromhex("9FD3AAD2F2691B9A"),
            mic=bytes.fromhex("B70665BB9BF7CBCDA60195DB94F727D3"),
        ))
        self.assertEqual(headers.recipients[1].id.name, "pem-dev@tis.com")
        self.assertEqual(len(message.content), 160)

    def test_figure3_asymmetric_encrypted(self):
        message = parse(RFC1421_FIGURE3)
        headers = message.headers
        self.assertEqual(headers.dek_info.parameter, bytes.fromhex("BFF968AA74691AC1"))
        originator = headers.originator
        self.assertIsInstance(originator, AsymmetricOriginator)
        self.assertIsInstance(originator.id, Certificate)
        self.assertEqual(originator.id.data[:4], bytes([0x30, 0x82, 0x01, 0x95]))
        self.assertEqual(len(originator.id.data), 409)
        self.assertEqual(originator.key_info.algorithm, "RSA")
        self.assertEqual(len(originator.key_info.dek), 64)
        self.assertEqual(len(originator.issuer_certificates), 1)
        self.assertEqual(originator.mic_info.algorithm, "RSA-MD5")
        self.assertEqual(originator.mic_info.ik_algorithm, "RSA")
        recipient = headers.recipients[0]
        self.assertIsInstance(recipient, AsymmetricRecipient)
        self.assertEqual(recipient.id, AsymmetricID(
            issuer="MFExCzAJBgNVBAYTAlVTMSAwHgYDVQQKExdSU0EgRGF0YSBTZWN1cml0eSwgSW5j"
                   "LjEPMA0GA1UECxMGQmV0YSAxMQ8wDQYDVQQLEwZOT1RBUlk=",
            serial="66",
        ))
        self.assertEqual(len(recipient.key_info.dek), 64)
        self.assertEqual(len(message.content), 88)

    def test_figure4_mic_only(self):
        message = parse(RFC1421_FIGURE4)
        headers = message.headers
        self.assertEqual(headers.proc_type, ProcType(version=4, kind=ProcTypeKind.MIC_ONLY))
        self.assertIsNone(headers.dek_info)
        self.assertEqual(headers.recipients, ())
        self.assertEqual(len(headers.originator.issuer_certificates), 1)
        self.assertEqual(
            message.content,
            b"- A message for use in testing.\r\n- Following is a blank line:\r\n\r\nThis is the end.\r\n",
        )

    def test_figures_render_core_fields_only(self):
        rendered = parse(RFC1421_FIGURE3).render()
        self.assertIn("DEK-Info: DES-CBC,BFF968AA74691AC1\n", rendered)
        self.assertNotIn("Originator-Certificate", rendered)
        reparsed = parse(rendered)
        self.assertEqual(reparsed.headers.dek_info, parse(RFC1421_FIGURE3).headers.dek_info)
        self.assertIsNone(reparsed.headers.originator)


if __name__ == "__main__":
    unittest.main()
