"""Tests for resume and job posting parsers."""

import pytest

from resume_analyzer.exceptions import InputError
from resume_analyzer.parsers.jd_parser import clean_job_text, load_job_file
from resume_analyzer.parsers.resume_parser import clean_resume_text, parse_resume


class TestJobTextCleaning:
    def test_strips_tags_and_collapses_whitespace(self):
        text = "<h1>Marketing   Manager</h1>\n\n<p>Own\tSEO</p>"
        assert clean_job_text(text) == "Marketing Manager Own SEO"

    def test_unescapes_entities(self):
        assert clean_job_text("R&amp;D &lt;team&gt;") == "R&D <team>"

    def test_markup_only_is_empty(self):
        assert clean_job_text("<div>  <br/> </div>") == ""

    def test_load_job_file(self, tmp_path):
        job_file = tmp_path / "job.html"
        job_file.write_text("<p>Senior Marketing Manager</p>", encoding="utf-8")
        assert load_job_file(str(job_file)) == "<p>Senior Marketing Manager</p>"


class TestResumeParser:
    def test_parse_txt(self, tmp_path, sample_resume_text):
        resume_file = tmp_path / "resume.txt"
        resume_file.write_text(sample_resume_text, encoding="utf-8")
        result = parse_resume(resume_file)
        assert "Jane Doe" in result
        assert "Increased revenue 40%" in result

    def test_parse_md(self, tmp_path):
        resume_file = tmp_path / "resume.md"
        resume_file.write_text("# Jane Doe\n\n- SEO", encoding="utf-8")
        assert parse_resume(resume_file) == "# Jane Doe\n\n- SEO"

    def test_unsupported_format(self, tmp_path):
        resume_file = tmp_path / "resume.rtf"
        resume_file.write_text("text", encoding="utf-8")
        with pytest.raises(InputError, match="Unsupported file format") as exc_info:
            parse_resume(resume_file)
        assert exc_info.value.stage == "ingestion"

    def test_parse_docx(self, tmp_path):
        from docx import Document

        doc = Document()
        doc.add_paragraph("Jane Doe")
        doc.add_paragraph("")
        doc.add_paragraph("Marketing Manager")
        path = tmp_path / "resume.docx"
        doc.save(str(path))
        assert parse_resume(path) == "Jane Doe\nMarketing Manager"

    def test_parse_pdf(self, tmp_path):
        import fitz

        path = tmp_path / "resume.pdf"
        doc = fitz.open()
        page = doc.new_page()
        page.insert_text((72, 72), "Jane Doe Marketing Manager")
        doc.save(str(path))
        doc.close()
        assert "Jane Doe Marketing Manager" in parse_resume(path)


class TestCleanResumeText:
    def test_removes_invisible_characters(self):
        assert clean_resume_text("Jane\u200b Doe\ufeff") == "Jane Doe"

    def test_normalizes_bullets(self):
        assert clean_resume_text("● SEO\n  • HubSpot") == "- SEO\n  - HubSpot"

    def test_collapses_spaces(self):
        assert clean_resume_text("Jane    Doe   ") == "Jane Doe"

    def test_squeezes_blank_lines(self):
        assert clean_resume_text("a\n\n\n\n\nb") == "a\n\nb"
