from django.test import SimpleTestCase

from .resume_scoring import (
    ResumeScoreError,
    extract_json_object,
    overall_match_score,
    parse_analysis,
    rescore_sections,
)


def sample_scoring():
    return {
        "Technical Skills": {
            "section": "Technical Skills",
            "weightage": 40,
            "submenus": [
                {"submenu": "Core Skills", "weightage": 60, "score": 6, "weighted_score": 3.6, "remarks": "old"},
                {"submenu": "Tools", "weightage": 40, "score": 5, "weighted_score": 2.0, "remarks": "old tools"},
            ],
        },
        "Education": {
            "section": "Education",
            "weightage": 10,
            "submenus": [
                {"submenu": "Degree", "weightage": 50, "score": 10, "weighted_score": 5.0, "remarks": "BSc"},
                {"submenu": "Certifications", "weightage": 50, "score": 0, "weighted_score": 0, "remarks": ""},
            ],
        },
    }


class ExtractJsonObjectTests(SimpleTestCase):
    def test_extracts_object_surrounded_by_prose(self):
        text = 'Here is the result:\n```json\n{"overall_match_score": 72, "summary": "ok"}\n```\nThanks!'
        self.assertEqual(extract_json_object(text), {"overall_match_score": 72, "summary": "ok"})

    def test_takes_first_balanced_object_only(self):
        text = '{"a": {"b": 1}} trailing {"c": 2}'
        self.assertEqual(extract_json_object(text), {"a": {"b": 1}})

    def test_braces_inside_strings_do_not_close_the_object(self):
        text = 'reply {"remarks": "uses } and { freely", "quote": "say \\"hi\\""} end'
        self.assertEqual(
            extract_json_object(text),
            {"remarks": "uses } and { freely", "quote": 'say "hi"'},
        )

    def test_missing_object_raises(self):
        with self.assertRaises(ResumeScoreError):
            extract_json_object("no json here")

    def test_unbalanced_object_raises(self):
        with self.assertRaises(ResumeScoreError):
            extract_json_object('{"a": 1')

    def test_malformed_object_raises(self):
        with self.assertRaises(ResumeScoreError):
            extract_json_object("{'single': 'quotes'}")

    def test_parse_analysis_requires_scores(self):
        with self.assertRaises(ResumeScoreError):
            parse_analysis('{"overall_match_score": 80}')
        result = parse_analysis('{"overall_match_score": 80, "section_wise_scoring": {"x": {}}}')
        self.assertEqual(result["overall_match_score"], 80)


class RescoreSectionsTests(SimpleTestCase):
    def test_mapped_submenus_are_rescored(self):
        skills = [
            {"requirement": "Python for automation", "matched": "yes"},
            {"requirement": "Programming in Go", "matched": "partial"},
            {"requirement": "Bachelor degree in CS", "matched": "no"},
        ]
        result = rescore_sections(sample_scoring(), skills)
        technical = result["section_wise_scoring"]["Technical Skills"]["submenus"]
        core = technical[0]
        self.assertEqual(core["score"], 8)
        self.assertAlmostEqual(core["weighted_score"], 4.8)
        self.assertEqual(core["remarks"], "Python for automation: ✅, Programming in Go: ⚠️")

        degree = result["section_wise_scoring"]["Education"]["submenus"][0]
        self.assertEqual(degree["score"], 0)
        self.assertEqual(degree["weighted_score"], 0)
        self.assertEqual(degree["remarks"], "Bachelor degree in CS: ❌")

    def test_unmapped_submenus_keep_their_score(self):
        result = rescore_sections(sample_scoring(), [{"requirement": "Python for automation", "matched": "yes"}])
        tools = result["section_wise_scoring"]["Technical Skills"]["submenus"][1]
        self.assertEqual(tools["score"], 5)
        self.assertEqual(tools["remarks"], "old tools")

    def test_input_is_not_mutated(self):
        scoring = sample_scoring()
        rescore_sections(scoring, [{"requirement": "Python for automation", "matched": "no"}])
        self.assertEqual(scoring["Technical Skills"]["submenus"][0]["score"], 6)

    def test_overall_score_weights_sections(self):
        # Technical: (3.6 + 2.0) * 40 / 100 = 2.24; Education: 5.0 * 10 / 100 = 0.5
        self.assertEqual(overall_match_score(sample_scoring()), 3)
