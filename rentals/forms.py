from django import forms

from .models import Booking, Vehicle, VehicleFeatures


class BookingRequestForm(forms.Form):
    vehicle_id = forms.IntegerField(min_value=1)
    customer_name = forms.CharField(max_length=120)
    customer_phone = forms.CharField(max_length=24)
    start_date = forms.DateField()
    end_date = forms.DateField()
    pickup_location = forms.CharField(max_length=255)
    pickup_time = forms.TimeField(required=False)
    notes = forms.CharField(required=False, widget=forms.Textarea)


class BookingStatusForm(forms.Form):
    status = forms.ChoiceField(choices=Booking.Status.choices)


class VehicleForm(forms.ModelForm):
    class Meta:
        model = Vehicle
        fields = (
            "name",
            "model",
            "seats",
            "price_per_day",
            "image_url",
            "description",
            "features",
            "co2_per_km",
            "status",
        )
        widgets = {
            "name": forms.TextInput(attrs={"placeholder": "Executive Elite"}),
            "model": forms.TextInput(attrs={"placeholder": "Mercedes-Benz V-Class 2024"}),
            "seats": forms.NumberInput(attrs={"min": 1}),
            "co2_per_km": forms.NumberInput(attrs={"min": 0, "step": 0.1, "placeholder": "e.g. 150"}),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Omitted on create: the model defaults apply.
        self.fields["features"].required = False
        self.fields["status"].required = False

    def clean_features(self):
        return VehicleFeatures.from_value(self.cleaned_data.get("features")).as_dict()


class VehicleImageForm(forms.Form):
    image_url = forms.URLField(max_length=500)
    sort_order = forms.IntegerField(required=False)
