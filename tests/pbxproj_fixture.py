"""Sample Xcode project file used by the update check tests."""


def project_text(packages: list[tuple[str, str]]) -> str:
    """Build a minimal ``project.pbxproj`` with one reference per package."""
    objects = []
    for i, (url, version) in enumerate(packages):
        objects.append(
            f"""
\t\tA1B2C3D4E5F6{i:08X} /* XCRemoteSwiftPackageReference "pkg{i}" */ = {{
\t\t\tisa = XCRemoteSwiftPackageReference;
\t\t\trepositoryURL = "{url}";
\t\t\trequirement = {{
\t\t\t\tkind = upToNextMajorVersion;
\t\t\t\tminimumVersion = {version};
\t\t\t}};
\t\t}};"""
        )
    body = "".join(objects)
    return f"""// !$*UTF8*$!
{{
\tarchiveVersion = 1;
\tclasses = {{
\t}};
\tobjectVersion = 56;
\tobjects = {{

/* Begin PBXProject section */
\t\t00000000000000000000AAAA /* Project object */ = {{
\t\t\tisa = PBXProject;
\t\t\tbuildSettings = {{
\t\t\t\tPRODUCT_NAME = "$(TARGET_NAME)";
\t\t\t}};
\t\t\tknownRegions = (
\t\t\t\ten,
\t\t\t\tBase,
\t\t\t);
\t\t}};
/* End PBXProject section */
{body}
\t}};
\trootObject = 00000000000000000000AAAA /* Project object */;
}}
"""
