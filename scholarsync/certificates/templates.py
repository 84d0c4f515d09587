"""Printable HTML certificate.

Visual identity:
- Primary indigo: #4338CA
- Gold accent: #B08D2E
- Background: #FAFBFC
- Text: #1A1D23
- Muted: #6B7280
"""

from html import escape

from .models import Certificate


CERTIFICATE_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Certificate of Completion - {course_title}</title>
  <style>
    @page {{ size: A4 landscape; margin: 0; }}
    body {{
      margin: 0;
      background-color: #FAFBFC;
      font-family: Georgia, 'Times New Roman', serif;
      color: #1A1D23;
    }}
    .certificate {{
      box-sizing: border-box;
      width: 1000px;
      margin: 40px auto;
      padding: 60px 80px;
      background-color: #FFFFFF;
      border: 12px double #B08D2E;
      text-align: center;
    }}
    .heading {{
      margin: 0;
      font-size: 44px;
      letter-spacing: 2px;
      color: #4338CA;
    }}
    .lead {{ margin: 32px 0 8px; font-size: 18px; color: #6B7280; }}
    .student {{
      margin: 0;
      font-size: 40px;
      font-style: italic;
      border-bottom: 1px solid #B08D2E;
      display: inline-block;
      padding: 0 40px 8px;
    }}
    .course {{ margin: 8px 0 0; font-size: 28px; font-weight: bold; }}
    .footer {{
      display: flex;
      justify-content: space-between;
      margin-top: 64px;
      font-size: 15px;
      color: #6B7280;
    }}
    .footer strong {{ display: block; color: #1A1D23; font-size: 17px; }}
  </style>
</head>
<body>
  <div class="certificate">
    <h1 class="heading">Certificate of Completion</h1>
    <p class="lead">This is to certify that</p>
    <p class="student">{student_name}</p>
    <p class="lead">has successfully completed the course</p>
    <p class="course">{course_title}</p>
    <div class="footer">
      <div><strong>{completion_date}</strong>Date of completion</div>
      <div><strong>{instructor_name}</strong>Instructor</div>
      <div><strong>{certificate_id}</strong>Certificate ID</div>
    </div>
  </div>
</body>
</html>
"""


def render_certificate(certificate: Certificate) -> str:
    """Render the certificate as a standalone printable HTML page."""
    return CERTIFICATE_TEMPLATE.format(
        student_name=escape(certificate.student_name),
        course_title=escape(certificate.course_title),
        instructor_name=escape(certificate.instructor_name or "ScholarSync"),
        completion_date=certificate.issued_at.strftime("%B %d, %Y"),
        certificate_id=escape(certificate.certificate_id),
    )
