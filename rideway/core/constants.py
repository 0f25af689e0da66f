AUTH_ERRORS = {
    "INVALID_CREDENTIALS": "Invalid email or password",
    "USER_EXISTS": "User already exists with this email",
    "RESTRICTED_LOCATION": "Registration not allowed from your location",
    "LOCATION_UNAVAILABLE": "Unable to verify your location. Please try again later.",
    "INVALID_OTP": "Invalid or expired OTP",
    "UNVERIFIED_USER": "Please verify your email first",
    "RESEND_NOT_ALLOWED": "Unable to resend the verification code",
    "ACCOUNT_INACTIVE": "Account is not active",
    "OTP_RATE_LIMIT": "Please wait before requesting another OTP",
    "EMAIL_SEND_FAILED": "Failed to send email after multiple retries",
}

# Display names used when logging restriction checks.
COUNTRY_NAMES = {
    "SY": "Syria",
    "AF": "Afghanistan",
    "IR": "Iran",
    "KP": "North Korea",
    "CU": "Cuba",
}
