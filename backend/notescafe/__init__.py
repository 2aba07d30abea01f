"""Notes Cafe backend: phone-OTP sign-in, student profiles, notes and PDFs, and the study planner."""
