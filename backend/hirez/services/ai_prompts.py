def field_generation_system_prompt(*, hiring_domain: str) -> str:
    return (
        "You are an AI form generator. Given a job description and hiring domain, extract the most "
        "relevant fields that a candidate should fill in a job application form.\n\n"
        "Instructions:\n"
        "- Keep fields practical and concise.\n"
        "- Only return fields that are not already fixed (like name, email, phone, resume).\n"
        "- Choose from these field types: text, textarea, select, file, email, phone.\n"
        "- For select fields, always include options.\n"
        "- Return a JSON array of field objects.\n"
        f"- Generate fields specific to the hiring domain ({hiring_domain}).\n"
        "- For tech positions, focus on technical skills, projects, and experience.\n"
        "- For sales positions, focus on sales experience, achievements, and communication skills.\n"
        "- For non-tech positions, focus on relevant experience, soft skills, and domain knowledge.\n"
        "- Generate 3-5 fields maximum.\n\n"
        "Field object format:\n"
        "{\n"
        '  "type": "text" | "textarea" | "select" | "file" | "email" | "phone",\n'
        '  "label": "Field label",\n'
        '  "required": true or false,\n'
        '  "options": ["opt1", "opt2"] // only for select fields\n'
        "}\n\n"
        "Only respond with pure JSON. Do not include code blocks or explanations."
    )


def field_generation_user_prompt(*, job_description: str, hiring_domain: str) -> str:
    return (
        "Here is the job description:\n\n"
        f"{job_description or ''}\n\n"
        f"Hiring Domain: {hiring_domain}\n\n"
        "Based on this, generate a JSON array of recommended application form fields."
    )


def job_description_system_prompt() -> str:
    return (
        "You are an AI assistant that transforms raw or unstructured text into a well-formatted "
        "professional job description. Use the following standard format and return the output in HTML:\n\n"
        "About the job\n"
        "Job Title: [Title]\n"
        "Employment Type: [Full Time / Part Time / Contract]\n"
        "Experience: [X+ Years]\n"
        "Location: [Location Info]\n\n"
        "About [Company Name]:\n"
        "[Company Introduction Paragraph]\n\n"
        "Requirements\n"
        "[List of requirements in bullet points]\n\n"
        "Role & Responsibilities\n"
        "[List of responsibilities in bullet points]\n\n"
        "Ensure the tone is professional and the output is clean, readable, and structured as valid HTML "
        "using <div>, <h2>, <p>, and <ul>/<li> tags."
    )


def job_description_user_prompt(*, raw_text: str) -> str:
    return f"Here is the raw job description. Please convert it into the above format:\n\n{raw_text or ''}"


def resume_match_system_prompt() -> str:
    return (
        "You are an advanced AI-powered hiring assistant specializing in resume screening. Your task is to "
        "evaluate a candidate's resume against a given Job Description (JD) and provide a structured JSON "
        "response with:\n\n"
        "1. Match Score (Out of 100): How well the resume aligns with the JD.\n"
        "2. Strengths: A list of key strong points relevant to the role.\n"
        "3. Weaknesses: A list of gaps in experience, skills, or qualifications.\n"
        "4. Reasoning: A concise explanation of why the match score was given.\n\n"
        "Evaluation Criteria:\n"
        "- Technical Skills & Requirements: Does the resume clearly list required technologies, programming "
        "languages, and tools mentioned in the JD?\n"
        "- Work Experience & Project Alignment: Are past roles and projects relevant? Are contributions quantifiable?\n"
        "- Soft Skills & Culture Fit: Is teamwork, leadership, or problem-solving demonstrated?\n"
        "- Resume Presentation & Completeness: Is the resume structured well, avoiding unnecessary details "
        "while highlighting key strengths?\n\n"
        "Response Format (JSON):\n"
        "{\n"
        '  "match_score": X,\n'
        '  "strengths": ["Strength 1", "Strength 2", "Strength 3"],\n'
        '  "weaknesses": ["Weakness 1", "Weakness 2", "Weakness 3"],\n'
        '  "reasoning": "Brief explanation of the match score."\n'
        "}\n\n"
        "Provide a precise evaluation ensuring role-based relevance. Respond only in the structured JSON "
        "format provided above."
    )


def resume_match_user_prompt(*, resume_text: str, job_description: str) -> str:
    return (
        "### Job Description:\n\n"
        f"{job_description or ''}\n\n"
        "### Candidate's Resume:\n\n"
        f"{resume_text or ''}\n\n"
        "Evaluate how well this candidate's resume matches the given JD and return the response in the "
        "structured JSON format specified."
    )


def legacy_match_messages(*, resume_text: str, job_description: str) -> list[dict[str, str]]:
    prompt = (
        "Compare this resume with the job description provided. Analyze the match and return:\n"
        "1. A match score from 0 to 100.\n"
        "2. Key strengths of the candidate.\n"
        "3. Weaknesses or missing skills.\n"
        "4. A brief reasoning for the score.\n\n"
        "Job Description:\n"
        f"{job_description or ''}\n\n"
        "Resume:\n"
        f"{resume_text or ''}\n"
    )
    return [
        {"role": "system", "content": "You are an expert AI analyzing resumes for job fit."},
        {"role": "user", "content": prompt},
    ]
