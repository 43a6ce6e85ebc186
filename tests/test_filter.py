import unittest
from pathlib import Path

from result_filter import (
    ErrorKind,
    FilterError,
    InvalidFilterConfigError,
    InvalidSeverityError,
    filter_results,
)
from result_filter.domain import (
    MisconfigurationFinding,
    MisconfStatus,
    MisconfSummary,
    SecretFinding,
    Severity,
    VulnerabilityFinding,
)
from result_filter.policy import compile_policy
from result_filter.suppression import load_ignore_file

TESTDATA = Path(__file__).resolve().parent / "testdata"


def vuln(vid, pkg, ver, fixed, sev):
    return VulnerabilityFinding(
        vulnerability_id=vid,
        pkg_name=pkg,
        installed_version=ver,
        fixed_version=fixed,
        severity=sev,
    )


def misconf(mid, sev, status, title="Bad Deployment"):
    return MisconfigurationFinding(
        type="kubernetes",
        id=mid,
        title=title,
        message="something bad",
        severity=sev,
        status=status,
    )


class TestFilter(unittest.TestCase):
    def test_happy_path(self) -> None:
        vulns = [
            vuln("CVE-2019-0001", "foo", "1.2.3", "1.2.4", "LOW"),
            vuln("CVE-2019-0002", "bar", "1.2.3", "1.2.4", "CRITICAL"),
            vuln("CVE-2018-0001", "baz", "1.2.3", "", "HIGH"),
            vuln("CVE-2018-0001", "bar", "1.2.3", "", "CRITICAL"),
            vuln("CVE-2018-0002", "bar", "1.2.3", "", ""),
        ]
        misconfs = [
            misconf("ID100", "CRITICAL", MisconfStatus.FAILURE),
            misconf("ID200", "MEDIUM", MisconfStatus.SUCCESS, title="Bad Pod"),
        ]
        secrets = [
            SecretFinding(
                rule_id="generic-critical-rule",
                severity="CRITICAL",
                title="Critical Secret should pass filter",
                start_line=1,
                end_line=2,
                match="*****",
            ),
            SecretFinding(
                rule_id="generic-low-rule",
                severity="LOW",
                title="Low Secret should be ignored",
                start_line=3,
                end_line=4,
                match="*****",
            ),
        ]

        got_vulns, got_summary, got_misconfs, got_secrets = filter_results(
            vulns,
            misconfs,
            secrets,
            severities=[Severity.CRITICAL, Severity.HIGH, Severity.UNKNOWN],
        )

        self.assertEqual(
            [
                vuln("CVE-2018-0001", "bar", "1.2.3", "", "CRITICAL"),
                vuln("CVE-2019-0002", "bar", "1.2.3", "1.2.4", "CRITICAL"),
                vuln("CVE-2018-0002", "bar", "1.2.3", "", "UNKNOWN"),
                vuln("CVE-2018-0001", "baz", "1.2.3", "", "HIGH"),
            ],
            got_vulns,
        )
        self.assertEqual(MisconfSummary(successes=0, failures=1, exceptions=0), got_summary)
        self.assertEqual([misconfs[0]], got_misconfs)
        self.assertEqual([secrets[0]], got_secrets)

    def test_ignore_unfixed(self) -> None:
        vulns = [
            vuln("CVE-2019-0001", "foo", "1.2.3", "1.2.4", "LOW"),
            vuln("CVE-2018-0002", "bar", "1.2.3", "", "HIGH"),
        ]
        result = filter_results(vulns, [], [], severities=[Severity.HIGH], ignore_unfixed=True)
        self.assertEqual([], result.vulnerabilities)
        self.assertEqual(MisconfSummary(), result.misconf_summary)

    def test_ignore_file(self) -> None:
        vulns = [
            vuln("CVE-2019-0001", "foo", "1.2.3", "1.2.4", "LOW"),
            vuln("CVE-2019-0002", "foo", "1.2.3", "1.2.4", "LOW"),
            vuln("CVE-2019-0003", "foo", "1.2.3", "1.2.4", "LOW"),
            vuln("CVE-2022-0001", "foo", "1.2.3", "1.2.4", "LOW"),
            vuln("CVE-2022-0002", "foo", "1.2.3", "1.2.4", "LOW"),
            vuln("CVE-2022-0003", "foo", "1.2.3", "1.2.4", "LOW"),
        ]
        misconfs = [misconf("ID100", "LOW", MisconfStatus.FAILURE)]

        result = filter_results(
            vulns,
            misconfs,
            [],
            severities=[Severity.LOW],
            suppression=load_ignore_file(TESTDATA / ".trivyignore"),
        )

        self.assertEqual(
            [
                vuln("CVE-2019-0003", "foo", "1.2.3", "1.2.4", "LOW"),
                vuln("CVE-2022-0001", "foo", "1.2.3", "1.2.4", "LOW"),
            ],
            result.vulnerabilities,
        )
        self.assertEqual([], result.misconfigurations)
        # Suppressed misconfigurations are not counted either.
        self.assertEqual(MisconfSummary(), result.misconf_summary)

    def test_policy_file(self) -> None:
        vulns = [
            vuln("CVE-2019-0001", "foo", "1.2.3", "1.2.4", "LOW"),
            vuln("CVE-2019-0002", "foo", "1.2.3", "1.2.4", "LOW"),
            vuln("CVE-2019-0003", "foo", "1.2.3", "1.2.4", "LOW"),
        ]
        result = filter_results(
            vulns,
            [],
            [],
            severities=[Severity.LOW],
            policy=compile_policy(TESTDATA / "test_policy.yaml"),
        )
        self.assertEqual([vuln("CVE-2019-0001", "foo", "1.2.3", "1.2.4", "LOW")], result.vulnerabilities)

    def test_duplicates_with_empty_fixed_version(self) -> None:
        vulns = [
            vuln("CVE-2019-0001", "foo", "1.2.3", "", "LOW"),
            vuln("CVE-2019-0001", "foo", "1.2.3", "1.2.4", "LOW"),
            vuln("CVE-2019-0002", "bar", "1.2.3", "1.2.4", "CRITICAL"),
            vuln("CVE-2019-0002", "bar", "1.2.3", "1.2.5", "CRITICAL"),
            vuln("CVE-2018-0001", "baz", "1.2.3", "", "HIGH"),
            vuln("CVE-2018-0001", "bar", "1.2.3", "", "CRITICAL"),
            vuln("CVE-2018-0002", "bar", "1.2.3", "", ""),
            vuln("CVE-2018-0002", "bar", "2.0.0", "", ""),
        ]
        result = filter_results(
            vulns,
            [],
            [],
            severities=[Severity.CRITICAL, Severity.HIGH, Severity.UNKNOWN],
        )
        self.assertEqual(
            [
                vuln("CVE-2018-0001", "bar", "1.2.3", "", "CRITICAL"),
                vuln("CVE-2019-0002", "bar", "1.2.3", "1.2.5", "CRITICAL"),
                vuln("CVE-2018-0002", "bar", "1.2.3", "", "UNKNOWN"),
                vuln("CVE-2018-0002", "bar", "2.0.0", "", "UNKNOWN"),
                vuln("CVE-2018-0001", "baz", "1.2.3", "", "HIGH"),
            ],
            result.vulnerabilities,
        )


class TestFilterScenarios(unittest.TestCase):
    def test_same_advisory_different_packages_is_not_deduplicated(self) -> None:
        vulns = [
            vuln("CVE-2018-0001", "bar", "1.2.3", "", "CRITICAL"),
            vuln("CVE-2018-0001", "baz", "1.2.3", "", "HIGH"),
        ]
        result = filter_results(vulns, [], [], severities="CRITICAL,HIGH,UNKNOWN")
        self.assertEqual(vulns, result.vulnerabilities)

    def test_duplicate_keeps_greater_fixed_version(self) -> None:
        vulns = [
            vuln("X", "bar", "1.2.3", "1.2.4", "CRITICAL"),
            vuln("X", "bar", "1.2.3", "1.2.5", "CRITICAL"),
        ]
        result = filter_results(vulns, [], [], severities=[Severity.CRITICAL])
        self.assertEqual(1, len(result.vulnerabilities))
        self.assertEqual("1.2.5", result.vulnerabilities[0].fixed_version)

    def test_unfixed_vulnerability_is_dropped(self) -> None:
        result = filter_results(
            [vuln("Y", "foo", "1.0", "", "HIGH")],
            [],
            [],
            severities=[Severity.HIGH],
            ignore_unfixed=True,
        )
        self.assertEqual([], result.vulnerabilities)

    def test_misconfiguration_summary_counts_before_status_restriction(self) -> None:
        misconfs = [
            misconf("A", "CRITICAL", MisconfStatus.FAILURE),
            misconf("B", "MEDIUM", MisconfStatus.SUCCESS),
        ]
        result = filter_results([], misconfs, [], severities=[Severity.CRITICAL])
        self.assertEqual(["A"], [m.id for m in result.misconfigurations])
        self.assertEqual(MisconfSummary(successes=0, failures=1, exceptions=0), result.misconf_summary)

    def test_string_status_failure_is_counted_and_returned(self) -> None:
        finding = MisconfigurationFinding(type="kubernetes", id="A", severity="CRITICAL", status="FAIL")
        result = filter_results([], [finding], [], severities="CRITICAL")
        self.assertEqual(MisconfSummary(successes=0, failures=1, exceptions=0), result.misconf_summary)
        self.assertEqual(["A"], [m.id for m in result.misconfigurations])

    def test_non_failures_counted_but_hidden(self) -> None:
        misconfs = [
            misconf("A", "HIGH", MisconfStatus.FAILURE),
            misconf("B", "HIGH", MisconfStatus.SUCCESS),
            misconf("C", "HIGH", MisconfStatus.EXCEPTION),
        ]
        hidden = filter_results([], misconfs, [], severities=[Severity.HIGH])
        shown = filter_results([], misconfs, [], severities=[Severity.HIGH], include_non_failures=True)

        self.assertEqual(["A"], [m.id for m in hidden.misconfigurations])
        self.assertEqual(["A", "B", "C"], [m.id for m in shown.misconfigurations])
        expected = MisconfSummary(successes=1, failures=1, exceptions=1)
        self.assertEqual(expected, hidden.misconf_summary)
        self.assertEqual(expected, shown.misconf_summary)

    def test_bogus_severity_fails_the_whole_call(self) -> None:
        for args in (
            ([vuln("Z", "foo", "1.0", "", "bogus")], [], []),
            ([], [misconf("A", "bogus", MisconfStatus.FAILURE)], []),
            ([], [], [SecretFinding(rule_id="r", severity="bogus")]),
        ):
            with self.assertRaises(InvalidSeverityError) as cm:
                filter_results(*args, severities=[Severity.HIGH])
            self.assertEqual(ErrorKind.INVALID_SEVERITY, cm.exception.kind)

    def test_empty_severity_set_is_rejected(self) -> None:
        with self.assertRaises(InvalidFilterConfigError):
            filter_results([vuln("Z", "foo", "1.0", "", "HIGH")], [], [], severities=[])

    def test_severity_matching_is_case_insensitive(self) -> None:
        result = filter_results(
            [vuln("Z", "foo", "1.0", "", "high")],
            [],
            [],
            severities=["High"],
        )
        self.assertEqual(["HIGH"], [v.severity for v in result.vulnerabilities])

    def test_inputs_are_not_mutated(self) -> None:
        vulns = [
            vuln("B", "foo", "1.0", "", "low"),
            vuln("A", "foo", "1.0", "", "high"),
        ]
        snapshot = list(vulns)
        filter_results(vulns, [], [], severities="LOW,HIGH")
        self.assertEqual(snapshot, vulns)
        self.assertEqual("low", vulns[0].severity)

    def test_none_collections_are_empty(self) -> None:
        result = filter_results(None, None, None, severities="HIGH")
        self.assertEqual(([], MisconfSummary(), [], []), tuple(result))

    def test_wrong_item_type_is_rejected(self) -> None:
        with self.assertRaises(TypeError):
            filter_results([{"VulnerabilityID": "X"}], [], [], severities="HIGH")

    def test_errors_share_a_base_class(self) -> None:
        with self.assertRaises(FilterError):
            filter_results([], [], [], severities="NOPE")


class TestFilterProperties(unittest.TestCase):
    def _vulns(self):
        return [
            vuln("CVE-1", "a", "1.0", "", "LOW"),
            vuln("CVE-1", "a", "1.0", "2.0", "HIGH"),
            vuln("CVE-2", "a", "1.0", "1.9", "critical"),
            vuln("CVE-2", "a", "1.0", "1.10", "MEDIUM"),
            vuln("CVE-3", "b", "3.1", "", ""),
            vuln("CVE-3", "b", "3.2", "", "unknown"),
            vuln("CVE-4", "c", "0.1", "0.2", "High"),
        ]

    def _misconfs(self):
        return [
            misconf("M1", "HIGH", MisconfStatus.FAILURE),
            misconf("M2", "LOW", MisconfStatus.SUCCESS),
            misconf("M3", "", MisconfStatus.EXCEPTION),
            misconf("M4", "CRITICAL", MisconfStatus.SUCCESS),
        ]

    def test_idempotent(self) -> None:
        kw = dict(severities="CRITICAL,HIGH,UNKNOWN", ignore_unfixed=False, include_non_failures=True)
        first = filter_results(self._vulns(), self._misconfs(), [], **kw)
        second = filter_results(first.vulnerabilities, first.misconfigurations, first.secrets, **kw)
        self.assertEqual(first, second)

    def test_key_uniqueness_and_severity_closure(self) -> None:
        wanted = {Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.UNKNOWN}
        result = filter_results(self._vulns(), self._misconfs(), [], severities=wanted)

        keys = [v.identity_key for v in result.vulnerabilities]
        self.assertEqual(len(keys), len(set(keys)))
        for f in list(result.vulnerabilities) + list(result.misconfigurations):
            self.assertIn(Severity(f.severity), wanted)

    def test_lexicographic_fixed_version_tie_break(self) -> None:
        result = filter_results(self._vulns(), [], [], severities="CRITICAL,HIGH,MEDIUM,LOW,UNKNOWN")
        cve2 = [v for v in result.vulnerabilities if v.vulnerability_id == "CVE-2"]
        # "1.9" > "1.10" as strings; the representative's own severity is kept.
        self.assertEqual([("1.9", "CRITICAL")], [(v.fixed_version, v.severity) for v in cve2])

    def test_ignore_unfixed_never_increases_output(self) -> None:
        for sev in ("LOW", "HIGH", "CRITICAL,UNKNOWN", "CRITICAL,HIGH,MEDIUM,LOW,UNKNOWN"):
            off = filter_results(self._vulns(), [], [], severities=sev)
            on = filter_results(self._vulns(), [], [], severities=sev, ignore_unfixed=True)
            self.assertLessEqual(len(on.vulnerabilities), len(off.vulnerabilities))

    def test_summary_consistent_regardless_of_include_non_failures(self) -> None:
        for include in (False, True):
            result = filter_results(
                [],
                self._misconfs(),
                [],
                severities="CRITICAL,HIGH,UNKNOWN",
                include_non_failures=include,
            )
            # M1, M3, M4 survive the severity filter.
            self.assertEqual(3, result.misconf_summary.total)
            self.assertEqual(MisconfSummary(successes=1, failures=1, exceptions=1), result.misconf_summary)

    def test_output_order_independent_of_input_order(self) -> None:
        vulns = [
            vuln("CVE-9", "zlib", "1", "", "LOW"),
            vuln("CVE-1", "openssl", "1", "", "LOW"),
            vuln("CVE-5", "openssl", "1", "", "CRITICAL"),
            vuln("CVE-2", "openssl", "1", "", "CRITICAL"),
        ]
        forward = filter_results(vulns, [], [], severities="LOW,CRITICAL")
        backward = filter_results(list(reversed(vulns)), [], [], severities="LOW,CRITICAL")
        expected = [("openssl", "CVE-2"), ("openssl", "CVE-5"), ("openssl", "CVE-1"), ("zlib", "CVE-9")]
        self.assertEqual(expected, [(v.pkg_name, v.vulnerability_id) for v in forward.vulnerabilities])
        self.assertEqual(forward.vulnerabilities, backward.vulnerabilities)


if __name__ == "__main__":
    unittest.main()
